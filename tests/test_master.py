"""Tests for the MasterCoder facade."""

from pathlib import Path

import pytest

from master_coder.config import Config
from master_coder.database import InMemoryResultSink, SQLiteResultSink
from master_coder.errors import InvalidTask
from master_coder.master import MasterCoder
from master_coder.models import AutonomyPolicy, RunStatus
from master_coder.orchestrator.approval import AutoApproveGate, ConsoleApprovalGate, DenyAllGate

from .helpers import RecordingObserver, ScriptedFactory


@pytest.fixture
def config(tmp_path: Path) -> Config:
	return Config(config_dir=tmp_path / "config", data_dir=tmp_path / "data")


class TestDefaults:
	"""Wiring chosen from config and flags."""

	def test_dry_run_auto_approves_and_skips_persistence(self, config):
		master = MasterCoder(config=config, dry_run=True)
		assert isinstance(master.approval_gate, AutoApproveGate)
		assert master.sink is None

	def test_learning_enables_sqlite_sink(self, config):
		master = MasterCoder(config=config)
		assert isinstance(master.sink, SQLiteResultSink)
		assert master.sink.db_path == config.db_path
		assert isinstance(master.approval_gate, ConsoleApprovalGate)

	def test_learning_disabled(self, config):
		config.enable_learning = False
		assert MasterCoder(config=config).sink is None

	def test_trust_policy_auto_approves(self, config):
		master = MasterCoder(config=config, policy=AutonomyPolicy.TRUST)
		assert isinstance(master.approval_gate, AutoApproveGate)

	def test_overrides(self, config):
		master = MasterCoder(config=config, max_workers=2, token_budget=9000)
		assert master.planner.max_workers == 2
		assert master.orchestrator.max_parallel == 2
		assert master.token_budget == 9000
		assert master.policy == config.policy


class TestExecute:
	"""End-to-end runs with simulated workers."""

	@pytest.mark.asyncio
	async def test_dry_run_end_to_end(self, config):
		sink = InMemoryResultSink()
		observer = RecordingObserver()
		master = MasterCoder(config=config, dry_run=True, sink=sink, observer=observer)

		record = await master.execute("Design the architecture, implement it, test it")

		assert record is not None
		assert record.success is True
		assert record.status == RunStatus.FINISHED
		assert [r.spec_id for r in record.results] == ["architect-0", "coder-0", "tester-0"]
		assert record.phases_completed == 3
		assert record.task == "Design the architecture, implement it, test it"
		assert sink.records == [record]
		assert observer.types[-1] == "run_complete"

	@pytest.mark.asyncio
	async def test_declined_plan_runs_nothing(self, config):
		sink = InMemoryResultSink()
		factory = ScriptedFactory()
		master = MasterCoder(
			config=config,
			policy=AutonomyPolicy.BALANCED,
			approval_gate=DenyAllGate(),
			worker_factory=factory,
			sink=sink,
		)

		assert await master.execute("Implement a parser") is None
		assert factory.created == []
		assert sink.records == []

	@pytest.mark.asyncio
	async def test_trust_skips_every_gate(self, config):
		factory = ScriptedFactory()
		master = MasterCoder(
			config=config,
			policy=AutonomyPolicy.TRUST,
			approval_gate=DenyAllGate(),
			worker_factory=factory,
			sink=InMemoryResultSink(),
		)

		record = await master.execute("Implement a parser")
		assert record.success is True
		assert factory.created == ["coder-0"]

	@pytest.mark.asyncio
	async def test_planning_errors_propagate(self, config):
		master = MasterCoder(config=config, dry_run=True)
		with pytest.raises(InvalidTask):
			await master.execute("   ")

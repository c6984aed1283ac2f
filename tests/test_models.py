"""Tests for data models."""

import pytest
from pydantic import ValidationError

from master_coder.capabilities import Capability
from master_coder.errors import MalformedGraph
from master_coder.models import (
	AutonomyPolicy,
	ExecutionPhase,
	ExecutionPlan,
	ResourceCost,
	TaskAnalysis,
	TaskExecutionRecord,
	WorkerResult,
	WorkGraph,
)

from .helpers import make_plan, make_spec


def _analysis(complexity: int) -> TaskAnalysis:
	return TaskAnalysis(
		task_description="x",
		complexity=complexity,
		estimated_files=1,
		estimated_tokens=1000,
		estimated_time_min=1,
		estimated_time_max=2,
		required_capabilities=[Capability.CODE_WRITING],
	)


@pytest.mark.parametrize("complexity, label", [
	(0, "Low"), (3, "Low"), (4, "Medium"), (6, "Medium"), (7, "High"), (8, "High"), (9, "Very High"), (10, "Very High"),
])
def test_complexity_label(complexity, label):
	assert _analysis(complexity).complexity_label == label


def test_analysis_bounds():
	with pytest.raises(ValidationError):
		_analysis(11)
	with pytest.raises(ValidationError):
		TaskAnalysis(
			task_description="x",
			complexity=1,
			estimated_files=1,
			estimated_tokens=1,
			estimated_time_min=1,
			estimated_time_max=1,
			required_capabilities=[],
		)


def test_resource_cost_addition():
	total = ResourceCost(tokens=100, seconds=1.5) + ResourceCost(tokens=50, seconds=0.5)
	assert total == ResourceCost(tokens=150, seconds=2.0)


class TestExecutionPlan:

	def test_lookups(self):
		plan = make_plan(make_spec("a"), make_spec("b", Capability.TESTING, dependencies=["a"]))
		assert plan.total_workers() == 2
		assert plan.spec("b").capability == Capability.TESTING
		assert plan.phase_of("b") == 1
		assert plan.phase_of("missing") is None
		assert plan.phase_capabilities(plan.phases[1]) == {Capability.TESTING}
		assert plan.graph.dependents_of("a") == ["b"]
		with pytest.raises(KeyError):
			plan.spec("missing")


class TestPlanInvariants:
	"""Hand-built or stored plans are checked on construction."""

	def _graph(self) -> WorkGraph:
		return WorkGraph(specs=[make_spec("a"), make_spec("b", dependencies=["a"])])

	def test_unknown_id_in_phase(self):
		with pytest.raises(MalformedGraph, match="ghost"):
			ExecutionPlan(
				graph=WorkGraph(specs=[make_spec("a")]),
				phases=[ExecutionPhase(index=0, description="Phase 1", spec_ids=["a", "ghost"], parallel=True)],
			)

	def test_dependency_in_same_parallel_phase(self):
		with pytest.raises(MalformedGraph, match="b depends on a"):
			ExecutionPlan(
				graph=self._graph(),
				phases=[ExecutionPhase(index=0, description="Phase 1", spec_ids=["a", "b"], parallel=True)],
			)

	def test_dependency_in_later_phase(self):
		with pytest.raises(MalformedGraph):
			ExecutionPlan(
				graph=self._graph(),
				phases=[
					ExecutionPhase(index=0, description="Phase 1", spec_ids=["b"]),
					ExecutionPhase(index=1, description="Phase 2", spec_ids=["a"]),
				],
			)

	def test_unscheduled_spec(self):
		with pytest.raises(MalformedGraph, match="missing"):
			ExecutionPlan(
				graph=self._graph(),
				phases=[ExecutionPhase(index=0, description="Phase 1", spec_ids=["a"])],
			)

	def test_spec_in_two_phases(self):
		with pytest.raises(MalformedGraph, match="more than one phase"):
			ExecutionPlan(
				graph=WorkGraph(specs=[make_spec("a")]),
				phases=[
					ExecutionPhase(index=0, description="Phase 1", spec_ids=["a"]),
					ExecutionPhase(index=1, description="Phase 2", spec_ids=["a"]),
				],
			)

	def test_stored_plan_is_checked(self):
		plan = make_plan(make_spec("a"), make_spec("b", dependencies=["a"]))
		data = plan.model_dump()
		data["phases"] = [{"index": 0, "description": "Phase 1", "spec_ids": ["a", "b"], "parallel": True}]
		with pytest.raises(MalformedGraph):
			ExecutionPlan.model_validate(data)

	def test_reduced_plan_is_valid(self):
		plan = make_plan(make_spec("a"), make_spec("b", dependencies=["a"]), make_spec("c", dependencies=["a"]))
		assert ExecutionPlan.model_validate_json(plan.model_dump_json()) == plan


class TestExecutionRecord:

	def test_summary(self):
		plan = make_plan(make_spec("a"), make_spec("b"))
		record = TaskExecutionRecord(
			plan=plan,
			policy=AutonomyPolicy.TRUST,
			budget=10_000,
			results=[
				WorkerResult(spec_id="a", capability=Capability.CODE_WRITING, success=True, cost=ResourceCost(tokens=300)),
				WorkerResult(spec_id="b", capability=Capability.CODE_WRITING, success=False, error="broke"),
			],
			total_cost=ResourceCost(tokens=300),
			phases_completed=1,
		)

		summary = record.get_summary()
		assert summary["workers_planned"] == 2
		assert summary["workers_executed"] == 2
		assert summary["workers_succeeded"] == 1
		assert summary["workers_failed"] == 1
		assert summary["phases_total"] == 1
		assert summary["tokens_used"] == 300
		assert summary["abort_reason"] is None
		assert record.result_for("b").error == "broke"
		assert record.result_for("c") is None
		assert len(record.run_id) == 12

"""Tests for visualizer Rich views."""

import io
from datetime import datetime

import pytest
from rich.console import Console

from master_coder.capabilities import Capability
from master_coder.database import WorkerHistoryEntry, WorkerStats
from master_coder.models import AbortReason, AutonomyPolicy, ResourceCost, TaskExecutionRecord, WorkerResult
from master_coder.orchestrator.events import EventType, ProgressEvent
from master_coder.orchestrator.planner import TaskPlanner
from master_coder.visualizer import (
	ConsoleProgressObserver,
	render_analysis,
	render_capabilities,
	render_history,
	render_plan,
	render_record,
	render_stats,
)
from master_coder.visualizer.utils import format_duration, format_timestamp, format_tokens, truncate

from .helpers import make_plan, make_spec


def _console() -> tuple[Console, io.StringIO]:
	buffer = io.StringIO()
	return Console(file=buffer, width=200, force_terminal=False), buffer


# -- utils tests --

def test_format_duration():
	assert format_duration(0.0001) == "<1ms"
	assert format_duration(0.045) == "45ms"
	assert format_duration(1.23) == "1.2s"
	assert "2m" in format_duration(125.0)


def test_format_tokens():
	assert format_tokens(950) == "950"
	assert format_tokens(12_500) == "12.5k"
	assert format_tokens(1_200_000) == "1.2M"


def test_format_timestamp():
	assert "ago" in format_timestamp(datetime.now().isoformat())
	assert format_timestamp("not-a-date") == "not-a-date"


def test_truncate():
	assert truncate("short") == "short"
	assert truncate("first line\nsecond line") == "first line"
	assert truncate("x" * 100, 10) == "xxxxxxx..."
	assert truncate("") == ""


# -- view tests --

def test_render_analysis_and_plan():
	planner = TaskPlanner()
	analysis = planner.analyze("Design the architecture, implement it, test it")
	plan = planner.plan(analysis)
	console, buffer = _console()

	render_analysis(analysis, console=console)
	render_plan(plan, console=console)

	out = buffer.getvalue()
	assert "Task Analysis" in out
	assert f"{analysis.complexity}/10" in out
	assert "Execution Plan" in out
	assert "architect-0" in out
	assert "<- coder-0" in out


def test_bracketed_task_text_rendered_literally():
	"""Square brackets in task text are shown, not parsed as markup."""
	planner = TaskPlanner()
	analysis = planner.analyze("Fix the [/bold] tag handling in the renderer")
	plan = planner.plan(analysis)
	console, buffer = _console()

	render_analysis(analysis, console=console)
	render_plan(plan, console=console)

	out = buffer.getvalue()
	assert "Fix the [/bold] tag handling in the renderer" in out
	assert "debugger-0" in out


def test_bracketed_worker_text_rendered_literally():
	plan = make_plan(make_spec("a", role="Writer [red]"))
	record = TaskExecutionRecord(
		plan=plan,
		policy=AutonomyPolicy.BALANCED,
		budget=5000,
		results=[WorkerResult(spec_id="a", role="Writer [red]", capability=Capability.CODE_WRITING, success=False, error="[/x] broke")],
		errors=["a: [/x] broke"],
		warnings=["Result sink failed: [/bold]"],
	)
	console, buffer = _console()
	render_record(record, console=console)

	out = buffer.getvalue()
	assert "Writer [red]" in out
	assert "a: [/x] broke" in out
	assert "Result sink failed: [/bold]" in out


def test_render_capabilities():
	console, buffer = _console()
	render_capabilities(console=console)
	out = buffer.getvalue()
	for role in ("Architect", "Code Writer", "Test Engineer", "Migration Specialist"):
		assert role in out
	assert "critical" in out
	assert "sensitive" in out


def test_render_record_aborted():
	plan = make_plan(make_spec("a", Capability.ARCHITECTURE))
	record = TaskExecutionRecord(
		plan=plan,
		policy=AutonomyPolicy.BALANCED,
		budget=5000,
		abort_reason=AbortReason.CRITICAL_FAILURE,
		results=[WorkerResult(spec_id="a", role="Architect", capability=Capability.ARCHITECTURE, success=False, error="boom")],
		errors=["a: boom"],
		warnings=["Result sink failed: disk full"],
	)
	console, buffer = _console()
	render_record(record, console=console)

	out = buffer.getvalue()
	assert "Worker Results" in out
	assert "FAIL" in out
	assert "Aborted (critical_failure)" in out
	assert "a: boom" in out
	assert "disk full" in out


def test_render_history_and_stats():
	console, buffer = _console()
	render_history([], console=console)
	assert "No worker executions recorded yet" in buffer.getvalue()

	entry = WorkerHistoryEntry(
		spec_id="coder-0",
		role="Code Writer Alpha",
		capability="code_writing",
		run_id="r1",
		tokens_used=1200,
		execution_time_ms=2500,
		success=True,
		error_kind=None,
		created_at=datetime.now().isoformat(),
	)
	render_history([entry], console=console)
	render_stats(WorkerStats(total_executions=1, successful_executions=1, by_capability={"code_writing": 1}), console=console)

	out = buffer.getvalue()
	assert "Code Writer Alpha" in out
	assert "1.2k" in out
	assert "100.0%" in out
	assert "code_writing: 1" in out


@pytest.mark.asyncio
async def test_progress_observer():
	plan = make_plan(make_spec("a"))
	spec = plan.spec("a")
	console, buffer = _console()
	observer = ConsoleProgressObserver(console)

	await observer(ProgressEvent(type=EventType.PHASE_START, run_id="r", phase=plan.phases[0], total_phases=1))
	await observer(ProgressEvent(type=EventType.WORKER_START, run_id="r", spec=spec))
	await observer(ProgressEvent(
		type=EventType.WORKER_COMPLETE,
		run_id="r",
		result=WorkerResult(spec_id="a", role=spec.role, capability=spec.capability, success=True, cost=ResourceCost(tokens=10)),
	))
	await observer(ProgressEvent(type=EventType.RUN_COMPLETE, run_id="r", message="finished"))

	out = buffer.getvalue()
	assert "(1/1)" in out
	assert f"{spec.role} started" in out
	assert f"{spec.role} done" in out
	assert "Run finished" in out


@pytest.mark.asyncio
async def test_progress_observer_bracketed_error():
	spec = make_spec("a", role="Coder [/b]")
	console, buffer = _console()
	observer = ConsoleProgressObserver(console)

	await observer(ProgressEvent(type=EventType.WORKER_START, run_id="r", spec=spec))
	await observer(ProgressEvent(
		type=EventType.WORKER_COMPLETE,
		run_id="r",
		result=WorkerResult(spec_id="a", role=spec.role, capability=spec.capability, success=False, error="exit [/red] 1"),
	))

	out = buffer.getvalue()
	assert "Coder [/b] started" in out
	assert "Coder [/b] failed: exit [/red] 1" in out

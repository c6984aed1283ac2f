"""Tests for worker supervision: retries, backoff, and timeouts."""

import pytest

from master_coder.capabilities import Capability
from master_coder.models import WorkerErrorKind
from master_coder.orchestrator.supervisor import WorkerSupervisor
from master_coder.workers.base import Worker, WorkerOutcome

from .helpers import Behavior, ConcurrencyTracker, ScriptedWorker, make_spec


class SleepRecorder:
	"""Replacement for asyncio.sleep that records requested delays."""

	def __init__(self):
		self.delays: list[float] = []

	async def __call__(self, delay: float) -> None:
		self.delays.append(delay)


def _worker(spec, **behavior) -> ScriptedWorker:
	return ScriptedWorker(spec, Behavior(**behavior), ConcurrencyTracker())


class TestSupervisorSuccess:
	"""Outcomes that complete."""

	@pytest.mark.asyncio
	async def test_success_first_try(self):
		spec = make_spec("a")
		result = await WorkerSupervisor().run(spec, _worker(spec, tokens=1234))

		assert result.success is True
		assert result.spec_id == "a"
		assert result.role == spec.role
		assert result.cost.tokens == 1234
		assert result.output == "done a"
		assert result.attempts == 1
		assert result.error_kind is None

	@pytest.mark.asyncio
	async def test_reported_failure_outcome(self):
		"""A worker returning success=False is a failed result, not retried."""

		class Unhappy(Worker):
			id = "u"
			capability = Capability.CODE_WRITING

			async def execute(self, subtask: str) -> WorkerOutcome:
				return WorkerOutcome(success=False, output="nope", tokens_used=10)

		result = await WorkerSupervisor().run(make_spec("u"), Unhappy())
		assert result.success is False
		assert result.error_kind == WorkerErrorKind.FAILED
		assert result.attempts == 1
		assert result.cost.tokens == 10


class TestSupervisorRetry:
	"""Retry policy."""

	@pytest.mark.asyncio
	async def test_transient_then_success(self):
		"""Transient errors are retried with exponential backoff."""
		sleep = SleepRecorder()
		spec = make_spec("a")
		worker = _worker(spec, transient_failures=2, error_tokens=5)
		supervisor = WorkerSupervisor(max_retries=2, retry_base_delay=1.0, sleep=sleep)

		result = await supervisor.run(spec, worker)

		assert result.success is True
		assert result.attempts == 3
		assert sleep.delays == [1.0, 2.0]
		# Tokens spent on failed attempts are still charged
		assert result.cost.tokens == 1000 + 10

	@pytest.mark.asyncio
	async def test_retries_exhausted(self):
		sleep = SleepRecorder()
		spec = make_spec("a")
		worker = _worker(spec, transient_failures=10)
		supervisor = WorkerSupervisor(max_retries=2, retry_base_delay=0.5, sleep=sleep)

		result = await supervisor.run(spec, worker)

		assert result.success is False
		assert result.error_kind == WorkerErrorKind.FAILED
		assert result.attempts == 3
		assert worker.calls == 3
		assert sleep.delays == [0.5, 1.0]

	@pytest.mark.asyncio
	async def test_permanent_error_not_retried(self):
		sleep = SleepRecorder()
		spec = make_spec("a")
		worker = _worker(spec, fail=True, error_tokens=42)

		result = await WorkerSupervisor(max_retries=3, sleep=sleep).run(spec, worker)

		assert result.success is False
		assert result.attempts == 1
		assert worker.calls == 1
		assert sleep.delays == []
		assert result.cost.tokens == 42
		assert "broke" in result.error

	@pytest.mark.asyncio
	async def test_unexpected_exception_not_retried(self):

		class Exploding(Worker):
			id = "x"
			capability = Capability.CODE_WRITING

			async def execute(self, subtask: str) -> WorkerOutcome:
				raise KeyError("missing")

		result = await WorkerSupervisor(max_retries=3).run(make_spec("x"), Exploding())
		assert result.success is False
		assert result.attempts == 1

	@pytest.mark.asyncio
	async def test_zero_retries(self):
		spec = make_spec("a")
		worker = _worker(spec, transient_failures=1)
		result = await WorkerSupervisor(max_retries=0).run(spec, worker)
		assert result.success is False
		assert result.attempts == 1

	def test_backoff_doubles(self):
		supervisor = WorkerSupervisor(retry_base_delay=0.25)
		assert [supervisor.backoff(n) for n in range(4)] == [0.25, 0.5, 1.0, 2.0]


class TestSupervisorTimeout:
	"""Per-attempt timeouts."""

	@pytest.mark.asyncio
	async def test_timeout_becomes_timeout_result(self):
		sleep = SleepRecorder()
		spec = make_spec("a")
		worker = _worker(spec, hang=True)
		supervisor = WorkerSupervisor(max_retries=1, worker_timeout=0.01, sleep=sleep)

		result = await supervisor.run(spec, worker)

		assert result.success is False
		assert result.error_kind == WorkerErrorKind.TIMEOUT
		assert result.attempts == 2
		assert "timed out" in result.error

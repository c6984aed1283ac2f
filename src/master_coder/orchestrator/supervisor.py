"""
Supervisor - Runs one worker with retries and timeouts.

Responsibilities:
- Per-attempt timeout via asyncio.wait_for
- Retry transient failures with exponential backoff
- Convert every outcome into a WorkerResult
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from ..errors import TransientWorkerError, WorkerError, WorkerTimeout
from ..models import ResourceCost, WorkerErrorKind, WorkerResult, WorkerSpec
from ..workers.base import Worker, WorkerOutcome

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class WorkerSupervisor:
	"""
	Supervises a single worker invocation.

	Only TransientWorkerError and per-attempt timeouts are retried.
	Any other WorkerError, or an unexpected exception, fails immediately.
	"""

	DEFAULT_MAX_RETRIES = 2

	def __init__(
		self,
		max_retries: int = DEFAULT_MAX_RETRIES,
		retry_base_delay: float = 1.0,
		worker_timeout: Optional[float] = 300.0,
		sleep: Optional[SleepFn] = None,
	):
		"""
		Initialize the supervisor.

		Args:
			max_retries: Retries after the first attempt
			retry_base_delay: Backoff base; attempt n waits base * 2**n
			worker_timeout: Seconds per attempt, None for no limit
			sleep: Awaitable sleep, replaceable in tests
		"""
		self.max_retries = max(0, max_retries)
		self.retry_base_delay = retry_base_delay
		self.worker_timeout = worker_timeout
		self._sleep = sleep or asyncio.sleep

	def backoff(self, attempt: int) -> float:
		"""Delay before retrying after the given zero-based attempt."""
		return self.retry_base_delay * (2 ** attempt)

	async def _attempt(self, worker: Worker, subtask: str) -> WorkerOutcome:
		if self.worker_timeout is None:
			return await worker.execute(subtask)
		return await asyncio.wait_for(worker.execute(subtask), timeout=self.worker_timeout)

	async def run(self, spec: WorkerSpec, worker: Worker) -> WorkerResult:
		"""
		Execute a worker for a spec.

		Returns:
			WorkerResult - never raises for worker failures
		"""
		started = time.monotonic()
		tokens_spent = 0
		attempts = 0
		last_error: Optional[WorkerError] = None

		for attempt in range(self.max_retries + 1):
			attempts = attempt + 1
			try:
				outcome = await self._attempt(worker, spec.subtask)
			except asyncio.TimeoutError:
				last_error = WorkerTimeout(f"{spec.id} timed out after {self.worker_timeout}s")
				logger.warning(f"Worker {spec.id} attempt {attempts} timed out")
			except TransientWorkerError as e:
				tokens_spent += e.tokens_used
				last_error = e
				logger.warning(f"Worker {spec.id} attempt {attempts} failed transiently: {e}")
			except WorkerError as e:
				tokens_spent += e.tokens_used
				return self._failure(spec, e, WorkerErrorKind.FAILED, tokens_spent, started, attempts)
			except Exception as e:
				logger.error(f"Worker {spec.id} raised unexpectedly: {e}")
				return self._failure(spec, e, WorkerErrorKind.FAILED, tokens_spent, started, attempts)
			else:
				return self._from_outcome(spec, outcome, tokens_spent, started, attempts)

			if attempt < self.max_retries:
				await self._sleep(self.backoff(attempt))

		kind = WorkerErrorKind.TIMEOUT if isinstance(last_error, WorkerTimeout) else WorkerErrorKind.FAILED
		logger.error(f"Worker {spec.id} gave up after {attempts} attempts: {last_error}")
		return self._failure(spec, last_error, kind, tokens_spent, started, attempts)

	def _from_outcome(
		self,
		spec: WorkerSpec,
		outcome: WorkerOutcome,
		tokens_spent: int,
		started: float,
		attempts: int,
	) -> WorkerResult:
		seconds = outcome.duration_seconds or (time.monotonic() - started)
		return WorkerResult(
			spec_id=spec.id,
			role=spec.role,
			capability=spec.capability,
			success=outcome.success,
			cost=ResourceCost(tokens=tokens_spent + max(0, outcome.tokens_used), seconds=max(0.0, seconds)),
			output=outcome.output,
			error_kind=None if outcome.success else WorkerErrorKind.FAILED,
			error=None if outcome.success else "worker reported failure",
			attempts=attempts,
		)

	def _failure(
		self,
		spec: WorkerSpec,
		error: Optional[BaseException],
		kind: WorkerErrorKind,
		tokens_spent: int,
		started: float,
		attempts: int,
	) -> WorkerResult:
		return WorkerResult(
			spec_id=spec.id,
			role=spec.role,
			capability=spec.capability,
			success=False,
			cost=ResourceCost(tokens=tokens_spent, seconds=time.monotonic() - started),
			error_kind=kind,
			error=str(error) if error else kind.value,
			attempts=attempts,
		)

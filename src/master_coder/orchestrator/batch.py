"""
Run limiter - Shared concurrency control and budget accounting for a run.

One semaphore bounds concurrent workers across every phase of a run.
Costs are accumulated under a single lock; the first stop signal (budget,
approval denial, critical failure, cancellation) closes admission while
in-flight workers drain.
"""

import asyncio
import logging
from typing import Optional

from ..models import AbortReason, ResourceCost, WorkerErrorKind, WorkerResult

logger = logging.getLogger(__name__)


class RunLimiter:
	"""
	Admission control for one orchestrated run.

	Uses asyncio.Semaphore to limit concurrent workers and an asyncio.Lock
	around the running total and the collected results.
	"""

	def __init__(
		self,
		max_parallel: int = 5,
		budget: int = 50_000,
		cancel_event: Optional[asyncio.Event] = None,
	):
		"""
		Initialize the limiter.

		Args:
			max_parallel: Maximum number of workers in flight at once
			budget: Token ceiling for the run
			cancel_event: Set by the caller to cancel the run
		"""
		if max_parallel < 1:
			raise ValueError(f"max_parallel must be >= 1, got {max_parallel}")
		self.max_parallel = max_parallel
		self.budget = budget
		self.cancel_event = cancel_event

		self._semaphore = asyncio.Semaphore(max_parallel)
		self._lock = asyncio.Lock()
		self._in_flight = 0
		self.peak_in_flight = 0
		self.total = ResourceCost()
		self.results: list[WorkerResult] = []
		self.abort_reason: Optional[AbortReason] = None

	@property
	def in_flight(self) -> int:
		return self._in_flight

	@property
	def stopped(self) -> bool:
		"""Whether admission is closed. Observes the cancel event."""
		if self.abort_reason is None and self.cancel_event is not None and self.cancel_event.is_set():
			self.stop(AbortReason.CANCELLED)
		return self.abort_reason is not None

	def stop(self, reason: AbortReason) -> None:
		"""Close admission. The first reason wins."""
		if self.abort_reason is None:
			logger.info(f"Stopping admissions: {reason.value}")
			self.abort_reason = reason

	async def acquire(self) -> bool:
		"""
		Wait for a worker slot.

		Returns:
			True if admitted; False if the run stopped before or while waiting
		"""
		if self.stopped:
			return False
		await self._semaphore.acquire()
		if self.stopped:
			self._semaphore.release()
			return False
		self._in_flight += 1
		self.peak_in_flight = max(self.peak_in_flight, self._in_flight)
		return True

	def release(self) -> None:
		self._in_flight -= 1
		self._semaphore.release()

	async def record(self, result: WorkerResult, critical: bool = False) -> WorkerResult:
		"""
		Collect a finished result and charge its cost.

		A result that brings the total over the budget, or arrives after the
		budget was already exceeded, is stored as a budget_exceeded failure
		with its output and cost kept.

		Returns:
			The result as stored
		"""
		async with self._lock:
			self.total = self.total + result.cost
			if self.total.tokens > self.budget:
				if result.success:
					result = result.model_copy(update={
						"success": False,
						"error_kind": WorkerErrorKind.BUDGET_EXCEEDED,
						"error": f"token budget exceeded ({self.total.tokens}/{self.budget})",
					})
				self.stop(AbortReason.BUDGET_EXCEEDED)
			if critical and not result.success:
				logger.error(f"Critical worker {result.spec_id} failed: {result.error}")
				self.stop(AbortReason.CRITICAL_FAILURE)
			self.results.append(result)
		return result

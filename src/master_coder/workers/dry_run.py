"""Dry-run worker - simulates a unit of work without any remote call."""

import asyncio

from ..capabilities import Capability, get_profile
from .base import Worker, WorkerOutcome


class DryRunWorker(Worker):
	"""Returns a canned outcome with a fixed token cost."""

	def __init__(
		self,
		worker_id: str,
		capability: Capability,
		role: str = "",
		tokens: int = 1000,
		delay: float = 0.0,
	):
		self._id = worker_id
		self._capability = capability
		self.role = role or get_profile(capability).role
		self.tokens = tokens
		self.delay = delay

	@property
	def id(self) -> str:
		return self._id

	@property
	def capability(self) -> Capability:
		return self._capability

	async def execute(self, subtask: str) -> WorkerOutcome:
		if self.delay:
			await asyncio.sleep(self.delay)
		first_line = subtask.splitlines()[0] if subtask else ""
		return WorkerOutcome(
			success=True,
			output=f"[dry-run] {self.role}: {first_line}",
			tokens_used=self.tokens,
			duration_seconds=self.delay,
		)

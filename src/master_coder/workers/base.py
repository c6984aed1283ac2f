"""Worker interface consumed by the orchestrator."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from ..capabilities import Capability
from ..models import WorkerSpec


@dataclass
class WorkerOutcome:
	"""What a worker returns from one unit of work."""
	success: bool
	output: str = ""
	tokens_used: int = 0
	duration_seconds: float = 0.0


class Worker(ABC):
	"""
	Anything that can take a subtask and asynchronously produce an outcome.

	Implementations raise WorkerError (or TransientWorkerError for failures
	worth retrying) instead of returning partial state.
	"""

	@property
	@abstractmethod
	def id(self) -> str:
		...

	@property
	@abstractmethod
	def capability(self) -> Capability:
		...

	@abstractmethod
	async def execute(self, subtask: str) -> WorkerOutcome:
		...


WorkerFactoryFn = Callable[[WorkerSpec], Worker]

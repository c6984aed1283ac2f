"""Shared error types for master-coder.

Planning errors are raised before any worker starts and surface directly
to the caller. Worker errors are raised by worker implementations and are
absorbed into the execution record by the orchestrator.
"""

from typing import Optional


class MasterCoderError(Exception):
	"""Base exception for master-coder errors."""
	pass


class ConfigError(MasterCoderError):
	"""Raised when a configuration value is invalid."""
	pass


# -- Planning errors --


class PlanningError(MasterCoderError):
	"""A defect found while planning; no execution plan is produced."""
	pass


class InvalidTask(PlanningError):
	"""Raised when the task description is empty or unusable."""

	def __init__(self, reason: str):
		self.reason = reason
		super().__init__(f"Invalid task: {reason}")


class UnknownCapability(PlanningError):
	"""Raised when a capability name is not part of the catalog."""

	def __init__(self, name: str):
		self.name = name
		super().__init__(f"Unknown capability: {name!r}")


class MalformedGraph(PlanningError):
	"""Raised when a work graph has duplicate ids or dangling dependencies."""
	pass


class CircularDependency(PlanningError):
	"""Raised when the work graph contains a dependency cycle."""

	def __init__(
		self,
		remaining: list[str],
		unmet: Optional[list[tuple[str, str]]] = None,
		cycle: Optional[list[str]] = None,
	):
		self.remaining = list(remaining)
		self.unmet = list(unmet or [])
		self.cycle = list(cycle or [])
		if self.cycle:
			detail = " -> ".join(self.cycle)
		else:
			detail = ", ".join(self.remaining)
		super().__init__(f"Circular dependency detected: {detail}")


# -- Worker errors --


class WorkerError(MasterCoderError):
	"""A worker failed to complete its subtask."""

	def __init__(self, message: str, tokens_used: int = 0):
		self.tokens_used = tokens_used
		super().__init__(message)


class TransientWorkerError(WorkerError):
	"""A failure that may succeed on retry (transport errors, rate limits)."""
	pass


class WorkerTimeout(WorkerError):
	"""A worker exceeded its time limit on every attempt."""
	pass

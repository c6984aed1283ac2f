"""Shared test fixtures and helpers for master-coder tests."""

import asyncio
from dataclasses import dataclass, field
from typing import Optional

from master_coder.capabilities import Capability, get_profile
from master_coder.errors import TransientWorkerError, WorkerError
from master_coder.models import ExecutionPlan, WorkerSpec, WorkGraph
from master_coder.orchestrator.approval import ApprovalGate
from master_coder.orchestrator.events import ProgressEvent
from master_coder.orchestrator.graph import reduce_to_phases
from master_coder.workers.base import Worker, WorkerOutcome


def make_spec(
	spec_id: str,
	capability: Capability = Capability.CODE_WRITING,
	dependencies: Optional[list[str]] = None,
	role: Optional[str] = None,
) -> WorkerSpec:
	"""Create a WorkerSpec with a readable role and subtask."""
	return WorkerSpec(
		id=spec_id,
		role=role or f"{get_profile(capability).role} {spec_id}",
		capability=capability,
		subtask=f"Do the work for {spec_id}",
		dependencies=dependencies or [],
	)


def make_plan(*specs: WorkerSpec) -> ExecutionPlan:
	"""Reduce specs to a plan."""
	return reduce_to_phases(WorkGraph(specs=list(specs)))


@dataclass
class Behavior:
	"""Scripted behavior for one worker."""
	tokens: int = 1000
	delay: float = 0.0
	fail: bool = False
	transient_failures: int = 0
	hang: bool = False
	error_tokens: int = 0


class ConcurrencyTracker:
	"""Tracks how many scripted workers run at once."""

	def __init__(self):
		self.current = 0
		self.peak = 0
		self.started: list[str] = []

	def enter(self, spec_id: str) -> None:
		self.started.append(spec_id)
		self.current += 1
		self.peak = max(self.peak, self.current)

	def exit(self) -> None:
		self.current -= 1


class ScriptedWorker(Worker):
	"""Worker whose outcome is fixed by a Behavior."""

	def __init__(self, spec: WorkerSpec, behavior: Behavior, tracker: ConcurrencyTracker):
		self.spec = spec
		self.behavior = behavior
		self.tracker = tracker
		self.calls = 0

	@property
	def id(self) -> str:
		return self.spec.id

	@property
	def capability(self) -> Capability:
		return self.spec.capability

	async def execute(self, subtask: str) -> WorkerOutcome:
		self.calls += 1
		self.tracker.enter(self.spec.id)
		try:
			if self.behavior.hang:
				await asyncio.sleep(3600)
			if self.behavior.delay:
				await asyncio.sleep(self.behavior.delay)
			else:
				await asyncio.sleep(0)
			if self.calls <= self.behavior.transient_failures:
				raise TransientWorkerError(f"{self.spec.id} flaked", tokens_used=self.behavior.error_tokens)
			if self.behavior.fail:
				raise WorkerError(f"{self.spec.id} broke", tokens_used=self.behavior.error_tokens)
			return WorkerOutcome(success=True, output=f"done {self.spec.id}", tokens_used=self.behavior.tokens)
		finally:
			self.tracker.exit()


@dataclass
class ScriptedFactory:
	"""Worker factory returning ScriptedWorkers, keyed by spec id."""
	behaviors: dict[str, Behavior] = field(default_factory=dict)
	default: Behavior = field(default_factory=Behavior)
	tracker: ConcurrencyTracker = field(default_factory=ConcurrencyTracker)
	created: list[str] = field(default_factory=list)

	def __call__(self, spec: WorkerSpec) -> Worker:
		self.created.append(spec.id)
		return ScriptedWorker(spec, self.behaviors.get(spec.id, self.default), self.tracker)


class ScriptedGate(ApprovalGate):
	"""Answers approval requests from a list, then with a default."""

	def __init__(self, answers: Optional[list[bool]] = None, default: bool = True):
		self.answers = list(answers or [])
		self.default = default
		self.requests: list[str] = []

	async def request(self, description: str) -> bool:
		self.requests.append(description)
		if self.answers:
			return self.answers.pop(0)
		return self.default


class RecordingObserver:
	"""Collects progress events."""

	def __init__(self):
		self.events: list[ProgressEvent] = []

	async def __call__(self, event: ProgressEvent) -> None:
		self.events.append(event)

	@property
	def types(self) -> list[str]:
		return [e.type.value for e in self.events]

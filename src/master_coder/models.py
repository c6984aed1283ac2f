"""
Data models - Pydantic schemas for analyses, plans, and execution records.

Specs live in a flat arena (`WorkGraph.specs`) and refer to each other by
id; phases hold ordered spec ids rather than copies of the specs.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .capabilities import Capability
from .errors import ConfigError, MalformedGraph


class AutonomyPolicy(str, Enum):
	"""Approval behavior for a run."""
	CONSERVATIVE = "conservative"
	BALANCED = "balanced"
	TRUST = "trust"
	INTERACTIVE = "interactive"

	@classmethod
	def parse(cls, name: str) -> "AutonomyPolicy":
		"""Parse a policy name (case-insensitive)."""
		try:
			return cls((name or "").strip().lower())
		except ValueError:
			valid = ", ".join(p.value for p in cls)
			raise ConfigError(f"Invalid autonomy mode: {name!r} (expected one of: {valid})") from None


class TaskAnalysis(BaseModel):
	"""The planner's read of a task description."""
	model_config = ConfigDict(frozen=True)

	task_description: str = Field(description="Original task text")
	complexity: int = Field(ge=0, le=10, description="Complexity score, 0-10")
	estimated_files: int = Field(ge=0)
	estimated_tokens: int = Field(ge=0)
	estimated_time_min: int = Field(ge=0, description="Lower time estimate in minutes")
	estimated_time_max: int = Field(ge=0, description="Upper time estimate in minutes")
	required_capabilities: list[Capability] = Field(min_length=1)
	keywords: list[str] = Field(default_factory=list)

	@property
	def complexity_label(self) -> str:
		if self.complexity <= 3:
			return "Low"
		if self.complexity <= 6:
			return "Medium"
		if self.complexity <= 8:
			return "High"
		return "Very High"


class WorkerSpec(BaseModel):
	"""One planned unit of work."""
	model_config = ConfigDict(frozen=True)

	id: str = Field(description="Unique id within the plan")
	role: str = Field(description="Display name, e.g. 'Code Writer Alpha'")
	capability: Capability
	subtask: str = Field(description="Subtask text handed to the worker")
	dependencies: list[str] = Field(default_factory=list, description="Spec ids that must complete first")


class WorkGraph(BaseModel):
	"""Flat, indexed collection of worker specs."""
	model_config = ConfigDict(frozen=True)

	specs: list[WorkerSpec] = Field(default_factory=list)

	@property
	def ids(self) -> list[str]:
		return [s.id for s in self.specs]

	def get(self, spec_id: str) -> Optional[WorkerSpec]:
		for spec in self.specs:
			if spec.id == spec_id:
				return spec
		return None

	def index(self) -> dict[str, WorkerSpec]:
		"""Map spec id to spec."""
		return {s.id: s for s in self.specs}

	def dependents_of(self, spec_id: str) -> list[str]:
		"""Ids of specs that depend directly on the given spec."""
		return [s.id for s in self.specs if spec_id in s.dependencies]

	def __len__(self) -> int:
		return len(self.specs)


class ExecutionPhase(BaseModel):
	"""A batch of specs whose dependencies are satisfied by earlier phases."""
	model_config = ConfigDict(frozen=True)

	index: int = Field(ge=0)
	description: str
	spec_ids: list[str] = Field(default_factory=list)
	parallel: bool = False


class ExecutionPlan(BaseModel):
	"""Ordered phases covering a work graph."""
	model_config = ConfigDict(frozen=True)

	graph: WorkGraph
	phases: list[ExecutionPhase] = Field(default_factory=list)

	@model_validator(mode="after")
	def _check_phases(self) -> "ExecutionPlan":
		"""
		Phases must partition the graph, and every dependency must sit in a
		strictly earlier phase.

		Raises:
			MalformedGraph: the plan could start a worker with unmet dependencies
		"""
		index = self.graph.index()
		if len(index) != len(self.graph.specs):
			raise MalformedGraph("Plan graph contains duplicate worker ids")

		phase_of: dict[str, int] = {}
		for position, phase in enumerate(self.phases):
			if phase.index != position:
				raise MalformedGraph(f"Phase at position {position} has index {phase.index}")
			for spec_id in phase.spec_ids:
				if spec_id not in index:
					raise MalformedGraph(f"{phase.description} names unknown worker id: {spec_id}")
				if spec_id in phase_of:
					raise MalformedGraph(f"Worker {spec_id} is scheduled in more than one phase")
				phase_of[spec_id] = position

		unscheduled = [spec_id for spec_id in index if spec_id not in phase_of]
		if unscheduled:
			raise MalformedGraph(f"Workers missing from every phase: {', '.join(unscheduled)}")

		for spec_id, position in phase_of.items():
			for dep in index[spec_id].dependencies:
				if phase_of.get(dep, position) >= position:
					raise MalformedGraph(
						f"Worker {spec_id} depends on {dep}, which is not in an earlier phase"
					)
		return self

	def total_workers(self) -> int:
		return sum(len(p.spec_ids) for p in self.phases)

	def spec(self, spec_id: str) -> WorkerSpec:
		spec = self.graph.get(spec_id)
		if spec is None:
			raise KeyError(spec_id)
		return spec

	def phase_specs(self, phase: ExecutionPhase) -> list[WorkerSpec]:
		"""Specs of a phase, in listed order."""
		index = self.graph.index()
		return [index[spec_id] for spec_id in phase.spec_ids]

	def phase_capabilities(self, phase: ExecutionPhase) -> set[Capability]:
		return {s.capability for s in self.phase_specs(phase)}

	def phase_of(self, spec_id: str) -> Optional[int]:
		"""Index of the phase containing a spec."""
		for phase in self.phases:
			if spec_id in phase.spec_ids:
				return phase.index
		return None


class ResourceCost(BaseModel):
	"""Resources consumed by a worker or a run."""
	model_config = ConfigDict(frozen=True)

	tokens: int = Field(default=0, ge=0)
	seconds: float = Field(default=0.0, ge=0.0)

	def __add__(self, other: "ResourceCost") -> "ResourceCost":
		return ResourceCost(tokens=self.tokens + other.tokens, seconds=self.seconds + other.seconds)


class WorkerErrorKind(str, Enum):
	"""Why a worker result is unsuccessful."""
	FAILED = "failed"
	TIMEOUT = "timeout"
	BUDGET_EXCEEDED = "budget_exceeded"


class WorkerResult(BaseModel):
	"""Outcome of running one spec."""
	model_config = ConfigDict(frozen=True)

	spec_id: str
	role: str = ""
	capability: Capability
	success: bool
	cost: ResourceCost = Field(default_factory=ResourceCost)
	output: str = ""
	error_kind: Optional[WorkerErrorKind] = None
	error: Optional[str] = None
	attempts: int = Field(default=1, ge=0)
	completed_at: str = Field(default_factory=lambda: datetime.now().isoformat())


class RunStatus(str, Enum):
	"""Lifecycle of a plan run."""
	NOT_STARTED = "not_started"
	RUNNING = "running"
	FINISHED = "finished"
	ABORTED = "aborted"


class AbortReason(str, Enum):
	"""Why a run stopped before completing every phase."""
	APPROVAL_DENIED = "approval_denied"
	BUDGET_EXCEEDED = "budget_exceeded"
	CRITICAL_FAILURE = "critical_failure"
	CANCELLED = "cancelled"


class TaskExecutionRecord(BaseModel):
	"""Aggregate outcome of a plan run."""
	run_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
	task: str = ""
	plan: ExecutionPlan
	policy: AutonomyPolicy
	budget: int = Field(ge=0, description="Token ceiling for the run")
	status: RunStatus = Field(default=RunStatus.NOT_STARTED)
	abort_reason: Optional[AbortReason] = None
	results: list[WorkerResult] = Field(default_factory=list)
	success: bool = False
	total_cost: ResourceCost = Field(default_factory=ResourceCost)
	phases_completed: int = 0
	errors: list[str] = Field(default_factory=list)
	warnings: list[str] = Field(default_factory=list)
	started_at: Optional[str] = None
	finished_at: Optional[str] = None

	@property
	def successful_results(self) -> list[WorkerResult]:
		return [r for r in self.results if r.success]

	@property
	def failed_results(self) -> list[WorkerResult]:
		return [r for r in self.results if not r.success]

	def result_for(self, spec_id: str) -> Optional[WorkerResult]:
		for result in self.results:
			if result.spec_id == spec_id:
				return result
		return None

	def get_summary(self) -> dict:
		"""Summarize the run for display and storage."""
		return {
			"run_id": self.run_id,
			"status": self.status.value,
			"abort_reason": self.abort_reason.value if self.abort_reason else None,
			"success": self.success,
			"workers_planned": self.plan.total_workers(),
			"workers_executed": len(self.results),
			"workers_succeeded": len(self.successful_results),
			"workers_failed": len(self.failed_results),
			"phases_total": len(self.plan.phases),
			"phases_completed": self.phases_completed,
			"tokens_used": self.total_cost.tokens,
			"budget": self.budget,
		}

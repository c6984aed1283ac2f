"""
Task Planner - turns a task description into a team of workers.

Analysis is rule-based and deterministic: the same text always produces
the same complexity score, capability set, estimates, and plan, so that
budget and approval decisions downstream are reproducible.

Pipeline:
- analyze(): complexity, capabilities, keywords, resource estimates
- build_graph(): one or more worker specs per capability, with edges
- plan(): topological batching of the graph into execution phases
"""

import logging
import re
from typing import Iterable, Optional

from ..capabilities import (
	CAPABILITY_CATALOG,
	DEFAULT_CAPABILITY,
	Capability,
	CapabilityProfile,
	Stage,
)
from ..errors import InvalidTask, UnknownCapability
from ..models import ExecutionPlan, TaskAnalysis, WorkerSpec, WorkGraph
from .graph import reduce_to_phases

logger = logging.getLogger(__name__)

MAX_TASK_LENGTH = 10_000


class TaskPlanner:
	"""
	Plans worker teams for task descriptions.

	Stateless apart from its settings; safe to share between runs.
	"""

	BASE_COMPLEXITY = 3
	HIGH_WEIGHT = 2
	MEDIUM_WEIGHT = 1
	CONJUNCTION_BONUS = 1

	HIGH_COMPLEXITY_KEYWORDS = [
		"refactor", "migrate", "redesign", "architecture",
		"authentication", "oauth", "security", "encryption",
		"performance", "optimize", "scale", "distributed",
	]

	MEDIUM_COMPLEXITY_KEYWORDS = [
		"implement", "create", "build", "add feature",
		"integration", "api", "database", "tests",
	]

	CONJUNCTIONS = [" and ", " with "]

	# Resource estimate coefficients: base + per-unit increments
	FILES_BASE = 1.0
	FILES_PER_COMPLEXITY = 0.5
	FILES_PER_EXTRA_CAPABILITY = 1.0
	TOKENS_BASE = 2000
	TOKENS_PER_COMPLEXITY = 1000
	TOKENS_PER_FILE = 2000
	TOKENS_PER_CAPABILITY = 1500
	TIME_MIN_BASE, TIME_MIN_PER_COMPLEXITY, TIME_MIN_PER_CAPABILITY = 2, 2, 1
	TIME_MAX_BASE, TIME_MAX_PER_COMPLEXITY, TIME_MAX_PER_CAPABILITY = 5, 5, 2

	WIDE_SCOPE_WORDS = {"system", "entire", "codebase"}
	NARROW_SCOPE_WORDS = {"single", "one"}

	WRITER_NAMES = ["Alpha", "Beta", "Gamma"]

	def __init__(self, max_workers: int = 5):
		"""
		Initialize the planner.

		Args:
			max_workers: Upper bound used when splitting implementation
				work across several code writers
		"""
		self.max_workers = max(1, max_workers)

	# -- Analysis --

	def analyze(
		self,
		task: str,
		catalog: Optional[Iterable[Capability]] = None,
	) -> TaskAnalysis:
		"""
		Analyze a task to understand its requirements.

		Args:
			task: Free-text task description
			catalog: Capabilities available for this run (default: all)

		Returns:
			TaskAnalysis

		Raises:
			InvalidTask: empty, oversized, or binary input
			UnknownCapability: the catalog cannot cover the task
		"""
		self._validate_task(task)
		text = task.lower()
		available = self._resolve_catalog(catalog)

		complexity = self.estimate_complexity(text)
		capabilities = self.detect_capabilities(text, available)
		keywords = self.extract_keywords(text)
		files = self.estimate_files(text, complexity, len(capabilities))
		tokens = self.estimate_tokens(complexity, files, len(capabilities))
		time_min, time_max = self.estimate_time(complexity, len(capabilities))

		analysis = TaskAnalysis(
			task_description=task,
			complexity=complexity,
			estimated_files=files,
			estimated_tokens=tokens,
			estimated_time_min=time_min,
			estimated_time_max=time_max,
			required_capabilities=capabilities,
			keywords=keywords,
		)
		logger.info(
			f"Analyzed task: complexity={complexity} capabilities="
			f"{[c.value for c in capabilities]} files={files} tokens={tokens}"
		)
		return analysis

	def _validate_task(self, task: str) -> None:
		if not isinstance(task, str) or not task.strip():
			raise InvalidTask("task description is empty")
		if len(task) > MAX_TASK_LENGTH:
			raise InvalidTask(f"task description exceeds {MAX_TASK_LENGTH} characters ({len(task)})")
		if "\x00" in task:
			raise InvalidTask("task description contains NUL bytes")

	def _resolve_catalog(self, catalog: Optional[Iterable[Capability]]) -> list[Capability]:
		"""Normalize a catalog argument to capabilities in catalog order."""
		if catalog is None:
			return list(CAPABILITY_CATALOG)
		requested = set()
		for item in catalog:
			capability = item if isinstance(item, Capability) else Capability.parse(str(item))
			requested.add(capability)
		return [c for c in CAPABILITY_CATALOG if c in requested]

	def estimate_complexity(self, task: str) -> int:
		"""Score a task from 0 to 10. Each distinct keyword counts once."""
		text = task.lower()
		complexity = self.BASE_COMPLEXITY

		for keyword in self.HIGH_COMPLEXITY_KEYWORDS:
			if keyword in text:
				complexity += self.HIGH_WEIGHT

		for keyword in self.MEDIUM_COMPLEXITY_KEYWORDS:
			if keyword in text:
				complexity += self.MEDIUM_WEIGHT

		if any(c in text for c in self.CONJUNCTIONS):
			complexity += self.CONJUNCTION_BONUS

		return max(0, min(10, complexity))

	def detect_capabilities(
		self,
		task: str,
		available: Optional[list[Capability]] = None,
	) -> list[Capability]:
		"""Every capability whose keyword group matches, in catalog order."""
		text = task.lower()
		available = available if available is not None else list(CAPABILITY_CATALOG)

		capabilities = []
		for capability in available:
			profile = CAPABILITY_CATALOG[capability]
			if any(keyword in text for keyword in profile.keywords):
				capabilities.append(capability)

		if not capabilities:
			if DEFAULT_CAPABILITY not in available:
				raise UnknownCapability(DEFAULT_CAPABILITY.value)
			capabilities.append(DEFAULT_CAPABILITY)

		return capabilities

	def extract_keywords(self, task: str) -> list[str]:
		"""First ten distinct words longer than three characters."""
		keywords: list[str] = []
		for word in re.findall(r"[a-z0-9][a-z0-9_\-]*", task.lower()):
			if len(word) > 3 and word not in keywords:
				keywords.append(word)
			if len(keywords) == 10:
				break
		return keywords

	def estimate_files(self, task: str, complexity: int, capability_count: int = 1) -> int:
		words = set(re.findall(r"[a-z]+", task.lower()))
		if words & self.WIDE_SCOPE_WORDS:
			scope = 2.0
		elif words & self.NARROW_SCOPE_WORDS:
			scope = 0.5
		else:
			scope = 1.0

		raw = (
			self.FILES_BASE
			+ self.FILES_PER_COMPLEXITY * complexity
			+ self.FILES_PER_EXTRA_CAPABILITY * max(0, capability_count - 1)
		)
		return max(1, int(raw * scope))

	def estimate_tokens(self, complexity: int, files: int, capability_count: int = 1) -> int:
		return (
			self.TOKENS_BASE
			+ self.TOKENS_PER_COMPLEXITY * complexity
			+ self.TOKENS_PER_FILE * files
			+ self.TOKENS_PER_CAPABILITY * capability_count
		)

	def estimate_time(self, complexity: int, capability_count: int = 1) -> tuple[int, int]:
		"""Estimated (min, max) minutes."""
		low = (
			self.TIME_MIN_BASE
			+ self.TIME_MIN_PER_COMPLEXITY * complexity
			+ self.TIME_MIN_PER_CAPABILITY * capability_count
		)
		high = (
			self.TIME_MAX_BASE
			+ self.TIME_MAX_PER_COMPLEXITY * complexity
			+ self.TIME_MAX_PER_CAPABILITY * capability_count
		)
		return low, high

	# -- Graph construction --

	def build_graph(self, analysis: TaskAnalysis) -> WorkGraph:
		"""
		Create worker specs for each required capability.

		Design specs have no dependencies. Implementation specs depend on
		the design specs when any exist. Verification specs depend on the
		implementation specs (or the design specs if there are none).
		Documentation depends on everything before it.
		"""
		profiles = sorted(
			(CAPABILITY_CATALOG[c] for c in analysis.required_capabilities),
			key=lambda p: p.stage,
		)

		by_stage: dict[Stage, list[WorkerSpec]] = {stage: [] for stage in Stage}
		specs: list[WorkerSpec] = []

		for profile in profiles:
			dependencies = self._dependencies_for(profile.stage, by_stage)
			for role, subtask in self._expand(profile, analysis, len(specs)):
				spec = WorkerSpec(
					id=f"{profile.id_prefix}-{self._count_prefix(specs, profile.id_prefix)}",
					role=role,
					capability=profile.capability,
					subtask=f"{subtask}\n\nTask: {analysis.task_description}",
					dependencies=dependencies,
				)
				specs.append(spec)
				by_stage[profile.stage].append(spec)

		return WorkGraph(specs=specs)

	def _dependencies_for(
		self,
		stage: Stage,
		by_stage: dict[Stage, list[WorkerSpec]],
	) -> list[str]:
		if stage == Stage.DESIGN:
			return []
		if stage == Stage.DOCUMENTATION:
			return [s.id for earlier in Stage if earlier < stage for s in by_stage[earlier]]
		# Nearest earlier stage that has specs
		for earlier in sorted((s for s in Stage if s < stage), reverse=True):
			if by_stage[earlier]:
				return [s.id for s in by_stage[earlier]]
		return []

	def _expand(
		self,
		profile: CapabilityProfile,
		analysis: TaskAnalysis,
		planned: int,
	) -> list[tuple[str, str]]:
		"""(role, subtask) pairs for one capability."""
		if profile.capability != Capability.CODE_WRITING:
			return [(profile.role, profile.subtask)]

		count = 1
		if analysis.complexity >= 7 and analysis.estimated_files > 5:
			count = max(1, min(analysis.estimated_files // 3, self.max_workers - planned))

		pairs = []
		for i in range(count):
			if i < len(self.WRITER_NAMES):
				role = f"{profile.role} {self.WRITER_NAMES[i]}"
			else:
				role = f"{profile.role} Delta-{i - len(self.WRITER_NAMES) + 1}"
			suffix = f" (Part {i + 1})" if count > 1 else ""
			pairs.append((role, f"{profile.subtask}{suffix}"))
		return pairs

	@staticmethod
	def _count_prefix(specs: list[WorkerSpec], prefix: str) -> int:
		return sum(1 for s in specs if s.id.startswith(f"{prefix}-"))

	# -- Planning --

	def plan(self, analysis: TaskAnalysis) -> ExecutionPlan:
		"""
		Create an execution plan from an analysis.

		Raises:
			CircularDependency / MalformedGraph: the graph cannot be scheduled
		"""
		graph = self.build_graph(analysis)
		plan = reduce_to_phases(graph)
		logger.info(f"Planned {plan.total_workers()} workers in {len(plan.phases)} phases")
		return plan

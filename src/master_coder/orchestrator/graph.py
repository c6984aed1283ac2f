"""
Phase reduction - topological batching of a work graph.

Repeatedly takes the "ready set" (specs whose dependencies are all
scheduled) as the next phase. A graph that stops producing ready specs
before it is exhausted contains a cycle and is rejected.
"""

import logging
from typing import Optional

from ..errors import CircularDependency, MalformedGraph
from ..models import ExecutionPhase, ExecutionPlan, WorkerSpec, WorkGraph

logger = logging.getLogger(__name__)


def validate_graph(graph: WorkGraph) -> None:
	"""
	Check structural invariants of a work graph.

	Raises:
		MalformedGraph: duplicate ids or dependencies on unknown ids
		CircularDependency: a spec that depends on itself
	"""
	seen: set[str] = set()
	for spec in graph.specs:
		if spec.id in seen:
			raise MalformedGraph(f"Duplicate worker id: {spec.id}")
		seen.add(spec.id)

	for spec in graph.specs:
		if spec.id in spec.dependencies:
			raise CircularDependency([spec.id], unmet=[(spec.id, spec.id)], cycle=[spec.id, spec.id])
		missing = [d for d in spec.dependencies if d not in seen]
		if missing:
			raise MalformedGraph(f"Worker {spec.id} depends on unknown id(s): {', '.join(missing)}")


def find_cycle(specs: list[WorkerSpec]) -> Optional[list[str]]:
	"""Return one dependency cycle among the given specs as a closed id path."""
	index = {s.id: s for s in specs}
	visiting: set[str] = set()
	done: set[str] = set()
	path: list[str] = []

	def visit(spec_id: str) -> Optional[list[str]]:
		visiting.add(spec_id)
		path.append(spec_id)
		for dep in index[spec_id].dependencies:
			if dep not in index or dep in done:
				continue
			if dep in visiting:
				start = path.index(dep)
				return path[start:] + [dep]
			cycle = visit(dep)
			if cycle:
				return cycle
		visiting.discard(spec_id)
		done.add(spec_id)
		path.pop()
		return None

	for spec in specs:
		if spec.id not in done:
			cycle = visit(spec.id)
			if cycle:
				return cycle
	return None


def _is_parallel(ready: list[WorkerSpec]) -> bool:
	"""A phase runs in parallel only if no member depends on another member."""
	if len(ready) < 2:
		return False
	members = {s.id for s in ready}
	return not any(dep in members for spec in ready for dep in spec.dependencies)


def reduce_to_phases(graph: WorkGraph) -> ExecutionPlan:
	"""
	Reduce a work graph to an ordered execution plan.

	Args:
		graph: Validated or unvalidated work graph

	Returns:
		ExecutionPlan whose phases partition the graph's specs

	Raises:
		MalformedGraph: structural defects
		CircularDependency: the graph contains a cycle
	"""
	validate_graph(graph)

	phases: list[ExecutionPhase] = []
	scheduled: set[str] = set()
	remaining = list(graph.specs)

	while remaining:
		ready = [s for s in remaining if all(d in scheduled for d in s.dependencies)]

		if not ready:
			unmet = [
				(spec.id, dep)
				for spec in remaining
				for dep in spec.dependencies
				if dep not in scheduled
			]
			cycle = find_cycle(remaining)
			logger.error(f"Circular dependency detected, unmet edges: {unmet}")
			raise CircularDependency([s.id for s in remaining], unmet=unmet, cycle=cycle)

		parallel = _is_parallel(ready)
		number = len(phases) + 1
		phases.append(ExecutionPhase(
			index=len(phases),
			description=f"Phase {number} (parallel execution)" if parallel else f"Phase {number}",
			spec_ids=[s.id for s in ready],
			parallel=parallel,
		))

		scheduled.update(s.id for s in ready)
		remaining = [s for s in remaining if s.id not in scheduled]

	logger.debug(f"Reduced {len(graph)} specs to {len(phases)} phases")
	return ExecutionPlan(graph=graph, phases=phases)

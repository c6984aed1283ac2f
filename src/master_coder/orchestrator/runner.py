"""
Orchestrator - Runs an execution plan phase by phase.

State machine: not started -> (gate -> run -> complete)* -> finished | aborted.

Parallel phases fan workers out as asyncio tasks admitted through the
run's shared limiter; sequential phases run workers in listed order.
Every started worker yields exactly one WorkerResult.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from ..capabilities import get_profile
from ..config import Config
from ..database import ResultSink
from ..models import (
	AbortReason,
	AutonomyPolicy,
	ExecutionPhase,
	ExecutionPlan,
	ResourceCost,
	RunStatus,
	TaskExecutionRecord,
	WorkerErrorKind,
	WorkerResult,
	WorkerSpec,
)
from ..workers.base import WorkerFactoryFn
from .approval import ApprovalGate, needs_phase_approval, needs_worker_approval, request_approval
from .batch import RunLimiter
from .events import EventType, ProgressEvent, ProgressObserver, emit
from .supervisor import WorkerSupervisor

logger = logging.getLogger(__name__)


class Orchestrator:
	"""
	Executes plans under bounded concurrency and an approval policy.

	Worker failures, budget exhaustion, approval denials and cancellation
	are recorded on the returned TaskExecutionRecord; none of them raise.
	"""

	def __init__(
		self,
		max_parallel: int = 5,
		max_retries: int = 2,
		retry_base_delay: float = 1.0,
		worker_timeout: Optional[float] = 300.0,
		supervisor: Optional[WorkerSupervisor] = None,
	):
		"""
		Initialize the orchestrator.

		Args:
			max_parallel: Concurrent worker limit shared across a run
			max_retries: Retries for transient worker failures
			retry_base_delay: Backoff base in seconds
			worker_timeout: Per-attempt timeout in seconds
			supervisor: Prebuilt supervisor, overrides the retry settings
		"""
		if max_parallel < 1:
			raise ValueError(f"max_parallel must be >= 1, got {max_parallel}")
		self.max_parallel = max_parallel
		self.supervisor = supervisor or WorkerSupervisor(
			max_retries=max_retries,
			retry_base_delay=retry_base_delay,
			worker_timeout=worker_timeout,
		)

	@classmethod
	def from_config(cls, config: Config) -> "Orchestrator":
		return cls(
			max_parallel=config.max_parallel_workers,
			max_retries=config.max_retries,
			retry_base_delay=config.retry_base_delay,
			worker_timeout=config.worker_timeout,
		)

	async def execute(
		self,
		plan: ExecutionPlan,
		policy: AutonomyPolicy,
		budget: int,
		worker_factory: WorkerFactoryFn,
		approval_gate: ApprovalGate,
		*,
		observer: Optional[ProgressObserver] = None,
		sink: Optional[ResultSink] = None,
		cancel_event: Optional[asyncio.Event] = None,
		task: str = "",
	) -> TaskExecutionRecord:
		"""
		Run every phase of a plan.

		Args:
			plan: Phases to execute
			policy: Approval policy for the run
			budget: Token ceiling
			worker_factory: Callable building a Worker for a spec
			approval_gate: Answers approval requests
			observer: Optional async progress callback
			sink: Optional result sink, persisted exactly once
			cancel_event: Set to cancel the run cooperatively
			task: Original task text, stored on the record

		Returns:
			The finished or aborted TaskExecutionRecord
		"""
		record = TaskExecutionRecord(
			task=task,
			plan=plan,
			policy=policy,
			budget=budget,
			status=RunStatus.RUNNING,
			started_at=datetime.now().isoformat(),
		)
		limiter = RunLimiter(self.max_parallel, budget, cancel_event)
		total_phases = len(plan.phases)
		logger.info(
			f"Run {record.run_id}: {total_phases} phases, {plan.total_workers()} workers, "
			f"policy={policy.value}, budget={budget}"
		)

		for phase in plan.phases:
			if limiter.stopped:
				break

			if needs_phase_approval(policy, plan, phase):
				if not await request_approval(approval_gate, self._phase_request(plan, phase)):
					limiter.stop(AbortReason.APPROVAL_DENIED)
					record.errors.append(f"Approval denied for {phase.description}")
					break

			await emit(observer, ProgressEvent(
				type=EventType.PHASE_START,
				run_id=record.run_id,
				phase=phase,
				total_phases=total_phases,
				message=phase.description,
			))

			if phase.parallel:
				await self._run_parallel(record, plan, phase, policy, limiter, worker_factory, approval_gate, observer)
			else:
				await self._run_sequential(record, plan, phase, policy, limiter, worker_factory, approval_gate, observer)

			finished = all(any(r.spec_id == sid for r in limiter.results) for sid in phase.spec_ids)
			if finished:
				record.phases_completed += 1
			await emit(observer, ProgressEvent(
				type=EventType.PHASE_COMPLETE,
				run_id=record.run_id,
				phase=phase,
				total_phases=total_phases,
				message="completed" if finished else "interrupted",
			))

		self._finalize(record, limiter)

		await emit(observer, ProgressEvent(
			type=EventType.RUN_COMPLETE,
			run_id=record.run_id,
			total_phases=total_phases,
			message=record.status.value,
		))

		if sink is not None:
			try:
				await sink.persist(record)
			except Exception as e:
				logger.error(f"Result sink failed for run {record.run_id}: {e}")
				record.warnings.append(f"Result sink failed: {e}")

		return record

	async def _run_parallel(
		self,
		record: TaskExecutionRecord,
		plan: ExecutionPlan,
		phase: ExecutionPhase,
		policy: AutonomyPolicy,
		limiter: RunLimiter,
		worker_factory: WorkerFactoryFn,
		approval_gate: ApprovalGate,
		observer: Optional[ProgressObserver],
	) -> None:
		tasks: list[asyncio.Task] = []
		try:
			for spec in plan.phase_specs(phase):
				if not await self._approve_worker(record, spec, policy, limiter, approval_gate):
					break
				if not await limiter.acquire():
					break
				tasks.append(asyncio.create_task(
					self._run_admitted(record, spec, limiter, worker_factory, observer)
				))
		finally:
			# Drain whatever was admitted, even if admission stopped early
			if tasks:
				await asyncio.gather(*tasks)

	async def _run_sequential(
		self,
		record: TaskExecutionRecord,
		plan: ExecutionPlan,
		phase: ExecutionPhase,
		policy: AutonomyPolicy,
		limiter: RunLimiter,
		worker_factory: WorkerFactoryFn,
		approval_gate: ApprovalGate,
		observer: Optional[ProgressObserver],
	) -> None:
		for spec in plan.phase_specs(phase):
			if not await self._approve_worker(record, spec, policy, limiter, approval_gate):
				break
			if not await limiter.acquire():
				break
			await self._run_admitted(record, spec, limiter, worker_factory, observer)

	async def _approve_worker(
		self,
		record: TaskExecutionRecord,
		spec: WorkerSpec,
		policy: AutonomyPolicy,
		limiter: RunLimiter,
		approval_gate: ApprovalGate,
	) -> bool:
		if limiter.stopped:
			return False
		if not needs_worker_approval(policy):
			return True
		if await request_approval(approval_gate, f"{spec.role} ({spec.id})"):
			return True
		limiter.stop(AbortReason.APPROVAL_DENIED)
		record.errors.append(f"Approval denied for worker {spec.id}")
		return False

	async def _run_admitted(
		self,
		record: TaskExecutionRecord,
		spec: WorkerSpec,
		limiter: RunLimiter,
		worker_factory: WorkerFactoryFn,
		observer: Optional[ProgressObserver],
	) -> WorkerResult:
		"""Run one admitted spec and collect its result. Releases the slot."""
		try:
			await emit(observer, ProgressEvent(
				type=EventType.WORKER_START,
				run_id=record.run_id,
				spec=spec,
				message=spec.role,
			))
			try:
				worker = worker_factory(spec)
			except Exception as e:
				logger.error(f"Could not create worker for {spec.id}: {e}")
				result = WorkerResult(
					spec_id=spec.id,
					role=spec.role,
					capability=spec.capability,
					success=False,
					error_kind=WorkerErrorKind.FAILED,
					error=f"worker creation failed: {e}",
					attempts=0,
				)
			else:
				result = await self.supervisor.run(spec, worker)
			critical = get_profile(spec.capability).critical
			result = await limiter.record(result, critical=critical)
		finally:
			limiter.release()

		if result.success:
			logger.info(f"Worker {spec.id} completed ({result.cost.tokens} tokens)")
		else:
			logger.warning(f"Worker {spec.id} failed: {result.error}")
		await emit(observer, ProgressEvent(
			type=EventType.WORKER_COMPLETE,
			run_id=record.run_id,
			spec=spec,
			result=result,
			message="success" if result.success else (result.error or "failed"),
		))
		return result

	def _phase_request(self, plan: ExecutionPlan, phase: ExecutionPhase) -> str:
		roles = ", ".join(s.role for s in plan.phase_specs(phase))
		return f"{phase.description} ({len(phase.spec_ids)} workers: {roles})"

	def _finalize(self, record: TaskExecutionRecord, limiter: RunLimiter) -> None:
		record.results = list(limiter.results)
		record.total_cost = sum((r.cost for r in record.results), ResourceCost())
		record.abort_reason = limiter.abort_reason
		record.status = RunStatus.ABORTED if record.abort_reason else RunStatus.FINISHED
		record.success = record.abort_reason is None
		record.finished_at = datetime.now().isoformat()

		for result in record.failed_results:
			record.errors.append(f"{result.spec_id}: {result.error}")
		if record.abort_reason == AbortReason.BUDGET_EXCEEDED:
			record.errors.append(f"Token budget exceeded: {record.total_cost.tokens}/{record.budget}")

		logger.info(
			f"Run {record.run_id} {record.status.value}"
			+ (f" ({record.abort_reason.value})" if record.abort_reason else "")
			+ f": {len(record.successful_results)}/{len(record.results)} workers succeeded, "
			f"{record.total_cost.tokens} tokens"
		)

"""
Master coder - analyze, plan, approve, execute, persist.

Ties the planner, worker factory, orchestrator and result sink together
for a single task.
"""

import asyncio
import logging
from typing import Optional

from .config import Config, get_config
from .database import ResultSink, SQLiteResultSink
from .models import AutonomyPolicy, ExecutionPlan, TaskAnalysis, TaskExecutionRecord
from .orchestrator.approval import ApprovalGate, AutoApproveGate, ConsoleApprovalGate, request_approval
from .orchestrator.events import ProgressObserver
from .orchestrator.planner import TaskPlanner
from .orchestrator.runner import Orchestrator
from .workers.base import WorkerFactoryFn
from .workers.factory import WorkerFactory

logger = logging.getLogger(__name__)


class MasterCoder:
	"""
	Entry point for running a task end to end.

	Planning errors propagate to the caller; execution outcomes come back
	on the TaskExecutionRecord.
	"""

	def __init__(
		self,
		config: Optional[Config] = None,
		policy: Optional[AutonomyPolicy] = None,
		max_workers: Optional[int] = None,
		token_budget: Optional[int] = None,
		dry_run: bool = False,
		approval_gate: Optional[ApprovalGate] = None,
		worker_factory: Optional[WorkerFactoryFn] = None,
		sink: Optional[ResultSink] = None,
		observer: Optional[ProgressObserver] = None,
	):
		"""
		Initialize the master coder.

		Args:
			config: Loaded config; defaults to get_config()
			policy: Autonomy policy; defaults to config.default_mode
			max_workers: Worker cap for planning and concurrency
			token_budget: Token ceiling for a run
			dry_run: Simulate workers, auto-approve, skip persistence
			approval_gate: Gate for plan and phase approvals
			worker_factory: Callable building workers from specs
			sink: Result sink; defaults to SQLite when learning is enabled
			observer: Async progress observer
		"""
		self.config = config or get_config()
		self.policy = policy or self.config.policy
		self.max_workers = max_workers or self.config.max_parallel_workers
		self.token_budget = token_budget or self.config.token_budget
		self.dry_run = dry_run
		self.observer = observer

		if approval_gate is not None:
			self.approval_gate = approval_gate
		elif dry_run or self.policy == AutonomyPolicy.TRUST:
			self.approval_gate = AutoApproveGate()
		else:
			self.approval_gate = ConsoleApprovalGate()

		self.worker_factory = worker_factory or WorkerFactory(self.config, dry_run=dry_run)

		if sink is not None:
			self.sink: Optional[ResultSink] = sink
		elif self.config.enable_learning and not dry_run:
			self.sink = SQLiteResultSink(str(self.config.db_path))
		else:
			self.sink = None

		self.planner = TaskPlanner(max_workers=self.max_workers)
		self.orchestrator = Orchestrator(
			max_parallel=self.max_workers,
			max_retries=self.config.max_retries,
			retry_base_delay=self.config.retry_base_delay,
			worker_timeout=self.config.worker_timeout,
		)

	def analyze(self, task: str) -> TaskAnalysis:
		return self.planner.analyze(task)

	def plan(self, analysis: TaskAnalysis) -> ExecutionPlan:
		return self.planner.plan(analysis)

	async def approve_plan(self, plan: ExecutionPlan) -> bool:
		"""Ask once for the whole plan unless the policy trusts it."""
		if self.policy == AutonomyPolicy.TRUST:
			return True
		description = f"this plan ({len(plan.phases)} phases, {plan.total_workers()} workers)"
		return await request_approval(self.approval_gate, description)

	async def execute(
		self,
		task: str,
		cancel_event: Optional[asyncio.Event] = None,
	) -> Optional[TaskExecutionRecord]:
		"""
		Run a task end to end.

		Returns:
			The execution record, or None if the plan was declined

		Raises:
			PlanningError: if the task cannot be planned
		"""
		analysis = self.analyze(task)
		plan = self.plan(analysis)
		logger.info(
			f"Planned {plan.total_workers()} workers in {len(plan.phases)} phases "
			f"(complexity {analysis.complexity})"
		)
		return await self.run_plan(plan, task=analysis.task_description, cancel_event=cancel_event)

	async def run_plan(
		self,
		plan: ExecutionPlan,
		task: str = "",
		cancel_event: Optional[asyncio.Event] = None,
	) -> Optional[TaskExecutionRecord]:
		"""Approve and execute an already-built plan."""
		if not await self.approve_plan(plan):
			logger.info("Plan declined, nothing executed")
			return None

		return await self.orchestrator.execute(
			plan,
			self.policy,
			self.token_budget,
			self.worker_factory,
			self.approval_gate,
			observer=self.observer,
			sink=self.sink,
			cancel_event=cancel_event,
			task=task,
		)

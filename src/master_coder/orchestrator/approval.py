"""
Approval gates - policy-driven pausing before phases and workers.

The policy decides *when* to ask; the gate decides *what* the answer is.
A gate that raises is treated as a denial.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from ..capabilities import sensitive_capabilities
from ..models import AutonomyPolicy, ExecutionPhase, ExecutionPlan

logger = logging.getLogger(__name__)


class ApprovalGate:
	"""Base gate: approves everything."""

	async def request(self, description: str) -> bool:
		return True


class AutoApproveGate(ApprovalGate):
	"""Approves every request (used with the trust policy and in dry runs)."""
	pass


class DenyAllGate(ApprovalGate):
	"""Denies every request."""

	async def request(self, description: str) -> bool:
		return False


class CallbackApprovalGate(ApprovalGate):
	"""Delegates to a sync or async callable returning a bool."""

	def __init__(self, callback: Callable[[str], Union[bool, Awaitable[bool]]]):
		self.callback = callback

	async def request(self, description: str) -> bool:
		answer = self.callback(description)
		if inspect.isawaitable(answer):
			answer = await answer
		return bool(answer)


class ConsoleApprovalGate(ApprovalGate):
	"""Asks on the terminal without blocking the event loop."""

	def __init__(self, console: Optional[Console] = None, default: bool = True):
		self.console = console or Console()
		self.default = default

	async def request(self, description: str) -> bool:
		return await asyncio.to_thread(
			Confirm.ask,
			f"Execute {escape(description)}?",
			console=self.console,
			default=self.default,
		)


def needs_phase_approval(
	policy: AutonomyPolicy,
	plan: ExecutionPlan,
	phase: ExecutionPhase,
) -> bool:
	"""Whether a phase gate is required before the phase starts."""
	if policy == AutonomyPolicy.TRUST:
		return False
	if policy == AutonomyPolicy.CONSERVATIVE:
		return True
	if policy == AutonomyPolicy.BALANCED:
		if phase.index == 0 or phase.index == len(plan.phases) - 1:
			return True
		return bool(plan.phase_capabilities(phase) & sensitive_capabilities())
	# Interactive asks per worker instead
	return False


def needs_worker_approval(policy: AutonomyPolicy) -> bool:
	"""Whether every individual worker must be approved."""
	return policy == AutonomyPolicy.INTERACTIVE


async def request_approval(gate: ApprovalGate, description: str) -> bool:
	"""Ask a gate, treating any gate failure as a denial."""
	try:
		approved = await gate.request(description)
	except Exception as e:
		logger.error(f"Approval gate failed for '{description}': {e}")
		return False
	if not approved:
		logger.info(f"Approval denied: {description}")
	return bool(approved)

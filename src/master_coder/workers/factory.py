"""Worker factory - builds one worker per planned spec."""

from typing import Optional

from ..config import Config
from ..models import WorkerSpec
from .base import Worker
from .claude_cli import ClaudeCliWorker
from .dry_run import DryRunWorker


class WorkerFactory:
	"""
	Creates workers for specs.

	Callable, so it can be handed to the orchestrator directly.
	"""

	def __init__(
		self,
		config: Optional[Config] = None,
		dry_run: bool = False,
		dry_run_tokens: int = 1000,
		cwd: Optional[str] = None,
	):
		self.config = config or Config()
		self.dry_run = dry_run
		self.dry_run_tokens = dry_run_tokens
		self.cwd = cwd

	def create(self, spec: WorkerSpec) -> Worker:
		if self.dry_run:
			return DryRunWorker(spec.id, spec.capability, role=spec.role, tokens=self.dry_run_tokens)
		return ClaudeCliWorker(
			spec.id,
			spec.capability,
			role=spec.role,
			command=self.config.claude_command,
			model=self.config.claude_model,
			cwd=self.cwd,
		)

	def __call__(self, spec: WorkerSpec) -> Worker:
		return self.create(spec)

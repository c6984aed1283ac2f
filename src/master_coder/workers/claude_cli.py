"""
Claude CLI worker - runs one subtask through `claude --print`.

One generic implementation serves every capability; the capability only
selects the system prompt from the catalog.
"""

import asyncio
import json
import logging
import time
from typing import Optional

from ..capabilities import Capability, get_profile
from ..errors import TransientWorkerError, WorkerError
from .base import Worker, WorkerOutcome

logger = logging.getLogger(__name__)


class ClaudeCliWorker(Worker):
	"""Executes subtasks with the Claude CLI in non-interactive mode."""

	def __init__(
		self,
		worker_id: str,
		capability: Capability,
		role: str = "",
		command: str = "claude",
		model: Optional[str] = None,
		cwd: Optional[str] = None,
	):
		self._id = worker_id
		self._capability = capability
		self.role = role or get_profile(capability).role
		self.command = command
		self.model = model
		self.cwd = cwd
		self.system_prompt = get_profile(capability).system_prompt(self.role)

	@property
	def id(self) -> str:
		return self._id

	@property
	def capability(self) -> Capability:
		return self._capability

	def build_args(self) -> list[str]:
		args = [
			self.command,
			"--print",
			"--output-format", "json",
			"--append-system-prompt", self.system_prompt,
		]
		if self.model:
			args.extend(["--model", self.model])
		return args

	async def execute(self, subtask: str) -> WorkerOutcome:
		start = time.monotonic()
		try:
			process = await asyncio.create_subprocess_exec(
				*self.build_args(),
				stdin=asyncio.subprocess.PIPE,
				stdout=asyncio.subprocess.PIPE,
				stderr=asyncio.subprocess.PIPE,
				cwd=self.cwd,
			)
		except FileNotFoundError:
			raise WorkerError(f"Claude CLI not found: {self.command}") from None

		try:
			stdout, stderr = await process.communicate(input=subtask.encode())
		except asyncio.CancelledError:
			# Timed out or cancelled by the supervisor
			if process.returncode is None:
				process.kill()
				await process.wait()
			raise

		if process.returncode != 0:
			message = stderr.decode(errors="replace").strip() or f"exit code {process.returncode}"
			raise TransientWorkerError(f"{self.role} ({self.id}) CLI error: {message}")

		outcome = self.parse_output(stdout.decode(errors="replace"))
		outcome.duration_seconds = time.monotonic() - start
		if not outcome.success:
			raise WorkerError(f"{self.role} ({self.id}) failed: {outcome.output}", tokens_used=outcome.tokens_used)

		logger.debug(f"Worker {self.id} finished in {outcome.duration_seconds:.1f}s ({outcome.tokens_used} tokens)")
		return outcome

	@staticmethod
	def parse_output(raw: str) -> WorkerOutcome:
		"""Parse `--output-format json` output; plain text is accepted as-is."""
		try:
			data = json.loads(raw)
		except json.JSONDecodeError:
			return WorkerOutcome(success=True, output=raw.strip(), tokens_used=max(1, len(raw) // 4))

		if not isinstance(data, dict):
			return WorkerOutcome(success=True, output=raw.strip(), tokens_used=max(1, len(raw) // 4))

		usage = data.get("usage") or {}
		tokens = sum(
			int(usage.get(key) or 0)
			for key in ("input_tokens", "output_tokens", "cache_creation_input_tokens", "cache_read_input_tokens")
		)
		output = str(data.get("result", ""))
		if not tokens:
			tokens = max(1, len(output) // 4)

		return WorkerOutcome(
			success=not data.get("is_error", False),
			output=output,
			tokens_used=tokens,
		)

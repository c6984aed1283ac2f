"""Console observer printing orchestrator progress events."""

from typing import Optional

from rich.console import Console
from rich.markup import escape

from ..capabilities import get_profile
from ..orchestrator.events import EventType, ProgressEvent
from .utils import format_duration, format_tokens


class ConsoleProgressObserver:
	"""Async progress observer that prints one line per event."""

	def __init__(self, console: Optional[Console] = None):
		self.console = console or Console()

	async def __call__(self, event: ProgressEvent) -> None:
		if event.type == EventType.PHASE_START and event.phase is not None:
			self.console.print()
			self.console.rule(
				f"[bold cyan]{escape(event.phase.description)}[/bold cyan] "
				f"[dim]({event.phase.index + 1}/{event.total_phases})[/dim]"
			)
		elif event.type == EventType.WORKER_START and event.spec is not None:
			emoji = get_profile(event.spec.capability).emoji
			self.console.print(f"  [yellow]…[/yellow] {emoji} {escape(event.spec.role)} started")
		elif event.type == EventType.WORKER_COMPLETE and event.result is not None:
			result = event.result
			cost = f"[dim]{format_tokens(result.cost.tokens)} tokens, {format_duration(result.cost.seconds)}[/dim]"
			if result.success:
				self.console.print(f"  [green]✓[/green] {escape(result.role)} done {cost}")
			else:
				self.console.print(f"  [red]✗[/red] {escape(result.role)} failed: {escape(result.error or '')} {cost}")
		elif event.type == EventType.PHASE_COMPLETE and event.phase is not None:
			if event.message != "completed":
				self.console.print(f"  [dim]{escape(event.phase.description)} {escape(event.message)}[/dim]")
		elif event.type == EventType.RUN_COMPLETE:
			self.console.print()
			self.console.rule(f"[bold]Run {escape(event.message)}[/bold]")

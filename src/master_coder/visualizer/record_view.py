"""Rich views for execution records, worker history, and statistics."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..capabilities import get_profile
from ..database import WorkerHistoryEntry, WorkerStats
from ..models import TaskExecutionRecord
from .utils import format_duration, format_timestamp, format_tokens, status_style, status_text, truncate


def render_record(record: TaskExecutionRecord, console: Optional[Console] = None) -> None:
	"""Render worker results and the run outcome."""
	console = console or Console()

	if record.results:
		table = Table(title="Worker Results")
		table.add_column("Worker", style="cyan")
		table.add_column("Capability")
		table.add_column("Tokens", justify="right")
		table.add_column("Time", justify="right")
		table.add_column("Tries", justify="right")
		table.add_column("Status", justify="center")
		table.add_column("Detail", style="dim")

		for result in record.results:
			style = status_style(result.success)
			detail = result.output if result.success else (result.error or "")
			table.add_row(
				f"{get_profile(result.capability).emoji} {escape(result.role or result.spec_id)}",
				result.capability.value,
				format_tokens(result.cost.tokens),
				format_duration(result.cost.seconds),
				str(result.attempts),
				f"[{style}]{status_text(result.success)}[/{style}]",
				escape(truncate(detail, 50)),
			)
		console.print(table)

	summary = record.get_summary()
	style = status_style(record.success)
	outcome = "Completed" if record.success else f"Aborted ({summary['abort_reason']})"
	lines = [
		f"[bold]Outcome:[/bold] [{style}]{outcome}[/{style}]",
		f"[bold]Workers:[/bold] {summary['workers_succeeded']}/{summary['workers_planned']} succeeded"
		f" ({summary['workers_failed']} failed)",
		f"[bold]Phases:[/bold] {summary['phases_completed']}/{summary['phases_total']} complete",
		f"[bold]Tokens:[/bold] {format_tokens(summary['tokens_used'])} / {format_tokens(summary['budget'])}",
		f"[bold]Time:[/bold] {format_duration(record.total_cost.seconds)}",
	]
	if record.errors:
		lines.append("")
		lines.append("[bold]Errors:[/bold]")
		for error in record.errors[-5:]:
			lines.append(f"  - {escape(error)}")
	if record.warnings:
		lines.append("")
		lines.append("[bold]Warnings:[/bold]")
		for warning in record.warnings:
			lines.append(f"  - {escape(warning)}")

	console.print(Panel("\n".join(lines), title=f"Run {escape(record.run_id)}", border_style=style))


def render_history(entries: list[WorkerHistoryEntry], console: Optional[Console] = None) -> None:
	"""Render recent worker executions."""
	console = console or Console()

	if not entries:
		console.print("[dim]No worker executions recorded yet.[/dim]")
		return

	table = Table(title="Worker History")
	table.add_column("Time")
	table.add_column("Worker", style="cyan")
	table.add_column("Capability")
	table.add_column("Tokens", justify="right")
	table.add_column("Duration", justify="right")
	table.add_column("Status", justify="center")

	for entry in entries:
		style = status_style(entry.success)
		table.add_row(
			format_timestamp(entry.created_at),
			escape(entry.role or entry.spec_id),
			escape(entry.capability),
			format_tokens(entry.tokens_used),
			format_duration(entry.execution_time_ms / 1000.0),
			f"[{style}]{status_text(entry.success)}[/{style}]",
		)
	console.print(table)


def render_stats(stats: WorkerStats, console: Optional[Console] = None) -> None:
	"""Render aggregate worker statistics."""
	console = console or Console()

	lines = [
		f"[bold]Runs:[/bold] {stats.total_runs} ({stats.successful_runs} successful)",
		f"[bold]Worker executions:[/bold] {stats.total_executions}",
		f"[bold]Success rate:[/bold] {stats.success_rate * 100:.1f}%",
		f"[bold]Total tokens:[/bold] {format_tokens(stats.total_tokens)}",
		f"[bold]Avg tokens/worker:[/bold] {format_tokens(stats.avg_tokens_per_worker)}",
		f"[bold]Total time:[/bold] {format_duration(stats.total_time_secs)}",
		f"[bold]Avg time/worker:[/bold] {format_duration(stats.avg_time_per_worker)}",
	]
	if stats.by_capability:
		lines.append("")
		lines.append("[bold]By capability:[/bold]")
		for capability, count in stats.by_capability.items():
			lines.append(f"  - {escape(capability)}: {count}")

	console.print(Panel("\n".join(lines), title="Worker Statistics", border_style="green"))

"""Rich views for task analysis, execution plans, and the capability catalog."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from ..capabilities import CAPABILITY_CATALOG, get_profile
from ..models import ExecutionPlan, TaskAnalysis
from .utils import format_tokens, truncate


def render_analysis(analysis: TaskAnalysis, console: Optional[Console] = None) -> None:
	"""Render the planner's read of a task as a summary panel."""
	console = console or Console()

	capabilities = ", ".join(
		f"{get_profile(c).emoji} {escape(get_profile(c).role)}" for c in analysis.required_capabilities
	)
	lines = [
		f"[bold]Task:[/bold] {escape(analysis.task_description)}",
		"",
		f"[bold]Complexity:[/bold] {analysis.complexity}/10 ({analysis.complexity_label})",
		f"[bold]Estimated files:[/bold] {analysis.estimated_files}",
		f"[bold]Estimated tokens:[/bold] {format_tokens(analysis.estimated_tokens)}",
		f"[bold]Estimated time:[/bold] {analysis.estimated_time_min}-{analysis.estimated_time_max} min",
		f"[bold]Capabilities:[/bold] {capabilities}",
	]
	if analysis.keywords:
		lines.append(f"[bold]Keywords:[/bold] [dim]{escape(', '.join(analysis.keywords))}[/dim]")

	console.print(Panel("\n".join(lines), title="Task Analysis", border_style="cyan"))


def render_plan(plan: ExecutionPlan, console: Optional[Console] = None) -> None:
	"""Render a plan as a Rich Tree of phases and workers."""
	console = console or Console()

	tree = Tree(
		f"[bold]Execution Plan[/bold]  "
		f"[dim]({len(plan.phases)} phases, {plan.total_workers()} workers)[/dim]"
	)

	for phase in plan.phases:
		mode = "[cyan]parallel[/cyan]" if phase.parallel else "[dim]sequential[/dim]"
		phase_branch = tree.add(f"[bold]{escape(phase.description)}[/bold] {mode}")
		for spec in plan.phase_specs(phase):
			profile = get_profile(spec.capability)
			label = f"{profile.emoji} {escape(spec.role)} [dim]({escape(spec.id)})[/dim]"
			if spec.dependencies:
				label += f" [dim]<- {escape(', '.join(spec.dependencies))}[/dim]"
			phase_branch.add(label)

	console.print(tree)


def render_capabilities(console: Optional[Console] = None) -> None:
	"""Render the capability catalog as a table."""
	console = console or Console()

	table = Table(title="Available Workers")
	table.add_column("", justify="center")
	table.add_column("Role", style="cyan")
	table.add_column("Capability")
	table.add_column("Stage")
	table.add_column("Flags")
	table.add_column("Keywords", style="dim")

	for capability, profile in CAPABILITY_CATALOG.items():
		flags = []
		if profile.critical:
			flags.append("[red]critical[/red]")
		if profile.sensitive:
			flags.append("[yellow]sensitive[/yellow]")
		table.add_row(
			profile.emoji,
			profile.role,
			capability.value,
			profile.stage.name.lower(),
			" ".join(flags),
			truncate(", ".join(profile.keywords), 40),
		)

	console.print(table)

"""CLI for master-coder: run, plan, agents, and config commands."""

import argparse
import asyncio
import signal
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from .config import Config, default_config_toml, load_config
from .database import SQLiteResultSink
from .errors import ConfigError, PlanningError
from .logging_config import setup_logging
from .master import MasterCoder
from .models import AutonomyPolicy, ExecutionPlan, TaskExecutionRecord
from .orchestrator.approval import AutoApproveGate
from .orchestrator.planner import TaskPlanner
from .visualizer import (
	ConsoleProgressObserver,
	render_analysis,
	render_capabilities,
	render_history,
	render_plan,
	render_record,
	render_stats,
)

console = Console()


def _version() -> str:
	try:
		return pkg_version("master-coder")
	except PackageNotFoundError:
		return "unknown"


def _load(args: argparse.Namespace) -> Config:
	"""Load config and set up logging, exiting on invalid config."""
	try:
		config = load_config()
	except ConfigError as e:
		console.print(f"[red]Config error:[/red] {escape(str(e))}")
		sys.exit(2)
	level = "DEBUG" if getattr(args, "verbose", False) else config.log_level
	setup_logging(level=level, log_dir=config.log_dir)
	return config


def _task_text(args: argparse.Namespace) -> str:
	return " ".join(args.task)


def cmd_run(args: argparse.Namespace) -> None:
	"""Plan and execute a task."""
	config = _load(args)
	try:
		policy = AutonomyPolicy.parse(args.mode) if args.mode else config.policy
	except ConfigError as e:
		console.print(f"[red]{escape(str(e))}[/red]")
		sys.exit(2)

	master = MasterCoder(
		config=config,
		policy=policy,
		max_workers=args.max_workers,
		token_budget=args.budget,
		dry_run=args.dry_run,
		approval_gate=AutoApproveGate() if args.yes else None,
		observer=ConsoleProgressObserver(console),
	)

	task = _task_text(args)
	try:
		analysis = master.analyze(task)
		plan = master.plan(analysis)
	except PlanningError as e:
		console.print(f"[red]Planning failed:[/red] {escape(str(e))}")
		sys.exit(1)

	render_analysis(analysis, console=console)
	render_plan(plan, console=console)
	if args.dry_run:
		console.print("[yellow]Dry run: workers are simulated and nothing is saved.[/yellow]")

	record = asyncio.run(_execute(master, plan, analysis.task_description))
	if record is None:
		console.print("Task cancelled by user.")
		return
	render_record(record, console=console)
	if not record.success:
		sys.exit(1)


async def _execute(master: MasterCoder, plan: ExecutionPlan, task: str) -> Optional[TaskExecutionRecord]:
	"""Run an already-built plan; Ctrl-C cancels cooperatively."""
	cancel_event = asyncio.Event()
	loop = asyncio.get_running_loop()
	try:
		loop.add_signal_handler(signal.SIGINT, cancel_event.set)
	except (NotImplementedError, RuntimeError):
		# Not supported on this platform; Ctrl-C interrupts instead
		pass

	try:
		return await master.run_plan(plan, task=task, cancel_event=cancel_event)
	finally:
		try:
			loop.remove_signal_handler(signal.SIGINT)
		except (NotImplementedError, RuntimeError):
			pass


def cmd_plan(args: argparse.Namespace) -> None:
	"""Analyze a task and print its plan without executing anything."""
	config = _load(args)
	planner = TaskPlanner(max_workers=args.max_workers or config.max_parallel_workers)
	try:
		analysis = planner.analyze(_task_text(args))
		plan = planner.plan(analysis)
	except PlanningError as e:
		console.print(f"[red]Planning failed:[/red] {escape(str(e))}")
		sys.exit(1)

	if args.json:
		print(plan.model_dump_json(indent=2))
		return
	render_analysis(analysis, console=console)
	render_plan(plan, console=console)


def cmd_agents(args: argparse.Namespace) -> None:
	"""Show the worker catalog, statistics, or history."""
	target = args.agents_target or "list"
	if target == "list":
		render_capabilities(console=console)
		return

	config = _load(args)
	sink = SQLiteResultSink(str(config.db_path))
	if target == "stats":
		render_stats(asyncio.run(sink.stats()), console=console)
	elif target == "history":
		render_history(asyncio.run(sink.history(args.limit)), console=console)


def cmd_config(args: argparse.Namespace) -> None:
	"""Show, locate, or initialize the config file."""
	target = args.config_target or "show"
	config = _load(args)

	if target == "path":
		print(config.config_file)
	elif target == "init":
		if config.config_file.exists() and not args.force:
			console.print(f"[yellow]Config already exists:[/yellow] {escape(str(config.config_file))} (use --force)")
			sys.exit(1)
		config.config_file.write_text(default_config_toml())
		console.print(f"[green]Wrote[/green] {escape(str(config.config_file))}")
	else:
		for key, value in config.to_dict().items():
			console.print(f"[bold]{key}[/bold] = {escape(str(value))}")


def main() -> None:
	"""CLI entry point."""
	load_dotenv()

	parser = argparse.ArgumentParser(
		prog="master-coder",
		description="Plan a coding task into a team of specialized Claude workers and run it",
	)
	parser.add_argument("--version", action="version", version=f"%(prog)s {_version()}")
	parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
	subparsers = parser.add_subparsers(dest="command")

	# run
	run_parser = subparsers.add_parser("run", help="Plan and execute a task")
	run_parser.add_argument("task", nargs="+", help="Task description")
	run_parser.add_argument(
		"--mode",
		type=str,
		default=None,
		help="Autonomy mode: conservative, balanced, trust, interactive",
	)
	run_parser.add_argument("--max-workers", type=int, default=None, help="Maximum workers")
	run_parser.add_argument("--budget", type=int, default=None, help="Token budget")
	run_parser.add_argument("--dry-run", action="store_true", help="Simulate workers, save nothing")
	run_parser.add_argument("-y", "--yes", action="store_true", help="Approve every prompt")
	run_parser.set_defaults(func=cmd_run)

	# plan
	plan_parser = subparsers.add_parser("plan", help="Show the plan for a task without running it")
	plan_parser.add_argument("task", nargs="+", help="Task description")
	plan_parser.add_argument("--max-workers", type=int, default=None, help="Maximum workers")
	plan_parser.add_argument("--json", action="store_true", help="Print the plan as JSON")
	plan_parser.set_defaults(func=cmd_plan)

	# agents
	agents_parser = subparsers.add_parser("agents", help="Worker catalog, statistics, and history")
	agents_subparsers = agents_parser.add_subparsers(dest="agents_target")
	agents_subparsers.add_parser("list", help="Available workers").set_defaults(func=cmd_agents)
	agents_subparsers.add_parser("stats", help="Execution statistics").set_defaults(func=cmd_agents)
	history_parser = agents_subparsers.add_parser("history", help="Recent worker executions")
	history_parser.add_argument("--limit", type=int, default=10, help="Max results")
	history_parser.set_defaults(func=cmd_agents)
	agents_parser.set_defaults(func=cmd_agents)

	# config
	config_parser = subparsers.add_parser("config", help="Configuration")
	config_subparsers = config_parser.add_subparsers(dest="config_target")
	config_subparsers.add_parser("show", help="Show effective config").set_defaults(func=cmd_config)
	config_subparsers.add_parser("path", help="Print config file path").set_defaults(func=cmd_config)
	init_parser = config_subparsers.add_parser("init", help="Write a default config.toml")
	init_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")
	init_parser.set_defaults(func=cmd_config)
	config_parser.set_defaults(func=cmd_config)

	args = parser.parse_args()

	if not args.command:
		parser.print_help()
		sys.exit(1)

	args.func(args)

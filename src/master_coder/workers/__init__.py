"""Workers module - the unit-of-work interface and its implementations."""

from .base import Worker, WorkerFactoryFn, WorkerOutcome
from .claude_cli import ClaudeCliWorker
from .dry_run import DryRunWorker
from .factory import WorkerFactory

__all__ = [
	"Worker",
	"WorkerOutcome",
	"WorkerFactoryFn",
	"WorkerFactory",
	"ClaudeCliWorker",
	"DryRunWorker",
]

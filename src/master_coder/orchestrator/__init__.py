"""Orchestrator module - Planning, phase reduction, approval, and supervised execution."""

from .approval import (
	ApprovalGate,
	AutoApproveGate,
	CallbackApprovalGate,
	ConsoleApprovalGate,
	DenyAllGate,
	needs_phase_approval,
)
from .batch import RunLimiter
from .events import EventType, ProgressEvent, ProgressObserver
from .graph import find_cycle, reduce_to_phases, validate_graph
from .planner import TaskPlanner
from .runner import Orchestrator
from .supervisor import WorkerSupervisor

__all__ = [
	"TaskPlanner",
	"reduce_to_phases",
	"validate_graph",
	"find_cycle",
	"Orchestrator",
	"RunLimiter",
	"WorkerSupervisor",
	"ApprovalGate",
	"AutoApproveGate",
	"DenyAllGate",
	"CallbackApprovalGate",
	"ConsoleApprovalGate",
	"needs_phase_approval",
	"EventType",
	"ProgressEvent",
	"ProgressObserver",
]

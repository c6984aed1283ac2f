"""Progress events emitted by the orchestrator."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Optional

from ..models import ExecutionPhase, WorkerResult, WorkerSpec

logger = logging.getLogger(__name__)


class EventType(str, Enum):
	"""Kinds of progress event."""
	PHASE_START = "phase_start"
	WORKER_START = "worker_start"
	WORKER_COMPLETE = "worker_complete"
	PHASE_COMPLETE = "phase_complete"
	RUN_COMPLETE = "run_complete"


@dataclass
class ProgressEvent:
	"""One observable step of a run."""
	type: EventType
	run_id: str
	phase: Optional[ExecutionPhase] = None
	total_phases: int = 0
	spec: Optional[WorkerSpec] = None
	result: Optional[WorkerResult] = None
	message: str = ""
	timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


ProgressObserver = Callable[[ProgressEvent], Awaitable[None]]


async def emit(observer: Optional[ProgressObserver], event: ProgressEvent) -> None:
	"""Deliver an event; observer failures never reach the run."""
	if observer is None:
		return
	try:
		await observer(event)
	except Exception as e:
		logger.warning(f"Progress observer failed on {event.type.value}: {e}")

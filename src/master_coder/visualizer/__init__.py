"""Visualizer package - Rich terminal views for plans, runs, and history."""

from .plan_view import render_analysis, render_capabilities, render_plan
from .progress import ConsoleProgressObserver
from .record_view import render_history, render_record, render_stats

__all__ = [
	"render_analysis",
	"render_plan",
	"render_capabilities",
	"render_record",
	"render_history",
	"render_stats",
	"ConsoleProgressObserver",
]

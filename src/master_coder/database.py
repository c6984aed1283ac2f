"""SQLite result sink for execution history and worker statistics."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import aiosqlite

from .models import TaskExecutionRecord

logger = logging.getLogger(__name__)


@dataclass
class WorkerHistoryEntry:
	spec_id: str
	role: str
	capability: str
	run_id: str
	tokens_used: int
	execution_time_ms: int
	success: bool
	error_kind: Optional[str]
	created_at: str

	@classmethod
	def from_row(cls, row: aiosqlite.Row) -> "WorkerHistoryEntry":
		return cls(
			spec_id=row["spec_id"],
			role=row["role"],
			capability=row["capability"],
			run_id=row["run_id"],
			tokens_used=row["tokens_used"],
			execution_time_ms=row["execution_time_ms"],
			success=bool(row["success"]),
			error_kind=row["error_kind"],
			created_at=row["created_at"],
		)


@dataclass
class WorkerStats:
	total_executions: int = 0
	successful_executions: int = 0
	total_tokens: int = 0
	total_time_secs: float = 0.0
	total_runs: int = 0
	successful_runs: int = 0
	by_capability: dict[str, int] = field(default_factory=dict)

	@property
	def success_rate(self) -> float:
		if self.total_executions == 0:
			return 0.0
		return self.successful_executions / self.total_executions

	@property
	def avg_tokens_per_worker(self) -> int:
		if self.total_executions == 0:
			return 0
		return self.total_tokens // self.total_executions

	@property
	def avg_time_per_worker(self) -> float:
		if self.total_executions == 0:
			return 0.0
		return self.total_time_secs / self.total_executions


class ResultSink(ABC):
	"""Receives each finished TaskExecutionRecord exactly once."""

	@abstractmethod
	async def persist(self, record: TaskExecutionRecord) -> None:
		...


class InMemoryResultSink(ResultSink):
	"""Keeps records in a list. Used by tests and dry runs."""

	def __init__(self):
		self.records: list[TaskExecutionRecord] = []

	async def persist(self, record: TaskExecutionRecord) -> None:
		self.records.append(record)


class SQLiteResultSink(ResultSink):
	"""Persists runs and per-worker executions with aiosqlite."""

	def __init__(self, db_path: str = ""):
		if not db_path:
			from .config import get_config
			db_path = str(get_config().db_path)
		self.db_path = Path(db_path)
		self.db_path.parent.mkdir(parents=True, exist_ok=True)
		self._initialized = False

	async def init(self) -> None:
		"""Initialize database schema."""
		async with aiosqlite.connect(self.db_path) as db:
			await db.executescript("""
				CREATE TABLE IF NOT EXISTS task_executions (
					run_id TEXT PRIMARY KEY,
					task_description TEXT NOT NULL,
					policy TEXT NOT NULL,
					status TEXT NOT NULL,
					abort_reason TEXT,
					budget INTEGER NOT NULL,
					actual_tokens INTEGER NOT NULL,
					success INTEGER NOT NULL,
					phases_total INTEGER NOT NULL,
					phases_completed INTEGER NOT NULL,
					plan_data TEXT NOT NULL,
					result_data TEXT NOT NULL,
					created_at TEXT NOT NULL
				);

				CREATE TABLE IF NOT EXISTS worker_executions (
					id INTEGER PRIMARY KEY AUTOINCREMENT,
					run_id TEXT NOT NULL REFERENCES task_executions(run_id),
					spec_id TEXT NOT NULL,
					role TEXT NOT NULL,
					capability TEXT NOT NULL,
					subtask TEXT NOT NULL,
					tokens_used INTEGER NOT NULL,
					execution_time_ms INTEGER NOT NULL,
					success INTEGER NOT NULL,
					error_kind TEXT,
					attempts INTEGER NOT NULL,
					created_at TEXT NOT NULL
				);

				CREATE INDEX IF NOT EXISTS idx_task_executions_created ON task_executions(created_at);
				CREATE INDEX IF NOT EXISTS idx_worker_executions_created ON worker_executions(created_at);
				CREATE INDEX IF NOT EXISTS idx_worker_executions_capability ON worker_executions(capability);
			""")
			await db.commit()
		self._initialized = True

	async def _ensure_init(self) -> None:
		if not self._initialized:
			await self.init()

	async def persist(self, record: TaskExecutionRecord) -> None:
		"""Store a run and each of its worker results."""
		await self._ensure_init()
		created_at = record.finished_at or record.started_at or ""
		summary = record.get_summary()

		async with aiosqlite.connect(self.db_path) as db:
			await db.execute(
				"""
				INSERT OR REPLACE INTO task_executions (run_id, task_description, policy,
					status, abort_reason, budget, actual_tokens, success, phases_total,
					phases_completed, plan_data, result_data, created_at)
				VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
				""",
				(
					record.run_id,
					record.task,
					record.policy.value,
					record.status.value,
					record.abort_reason.value if record.abort_reason else None,
					record.budget,
					record.total_cost.tokens,
					int(record.success),
					summary["phases_total"],
					record.phases_completed,
					record.plan.model_dump_json(),
					record.model_dump_json(),
					created_at,
				),
			)
			await db.execute("DELETE FROM worker_executions WHERE run_id = ?", (record.run_id,))
			await db.executemany(
				"""
				INSERT INTO worker_executions (run_id, spec_id, role, capability, subtask,
					tokens_used, execution_time_ms, success, error_kind, attempts, created_at)
				VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
				""",
				[
					(
						record.run_id,
						result.spec_id,
						result.role,
						result.capability.value,
						self._subtask_for(record, result.spec_id),
						result.cost.tokens,
						int(result.cost.seconds * 1000),
						int(result.success),
						result.error_kind.value if result.error_kind else None,
						result.attempts,
						result.completed_at,
					)
					for result in record.results
				],
			)
			await db.commit()
		logger.debug(f"Persisted run {record.run_id} with {len(record.results)} worker results")

	@staticmethod
	def _subtask_for(record: TaskExecutionRecord, spec_id: str) -> str:
		spec = record.plan.graph.get(spec_id)
		return spec.subtask if spec else ""

	async def get_record(self, run_id: str) -> Optional[TaskExecutionRecord]:
		"""Load a stored run back into a TaskExecutionRecord."""
		await self._ensure_init()
		async with aiosqlite.connect(self.db_path) as db:
			db.row_factory = aiosqlite.Row
			async with db.execute(
				"SELECT result_data FROM task_executions WHERE run_id = ?", (run_id,)
			) as cursor:
				row = await cursor.fetchone()
		if row is None:
			return None
		return TaskExecutionRecord.model_validate_json(row["result_data"])

	async def history(self, limit: int = 10) -> list[WorkerHistoryEntry]:
		"""Most recent worker executions, newest first."""
		await self._ensure_init()
		async with aiosqlite.connect(self.db_path) as db:
			db.row_factory = aiosqlite.Row
			async with db.execute(
				"""
				SELECT spec_id, role, capability, run_id, tokens_used, execution_time_ms,
					success, error_kind, created_at
				FROM worker_executions
				ORDER BY created_at DESC, id DESC
				LIMIT ?
				""",
				(limit,),
			) as cursor:
				rows = await cursor.fetchall()
		return [WorkerHistoryEntry.from_row(row) for row in rows]

	async def stats(self) -> WorkerStats:
		"""Aggregate worker and run statistics."""
		await self._ensure_init()
		stats = WorkerStats()
		async with aiosqlite.connect(self.db_path) as db:
			async with db.execute(
				"""
				SELECT COUNT(*), COALESCE(SUM(success), 0), COALESCE(SUM(tokens_used), 0),
					COALESCE(SUM(execution_time_ms), 0)
				FROM worker_executions
				"""
			) as cursor:
				total, successful, tokens, time_ms = await cursor.fetchone()
			stats.total_executions = total
			stats.successful_executions = successful
			stats.total_tokens = tokens
			stats.total_time_secs = time_ms / 1000.0

			async with db.execute(
				"SELECT COUNT(*), COALESCE(SUM(success), 0) FROM task_executions"
			) as cursor:
				stats.total_runs, stats.successful_runs = await cursor.fetchone()

			async with db.execute(
				"SELECT capability, COUNT(*) FROM worker_executions GROUP BY capability ORDER BY capability"
			) as cursor:
				async for capability, count in cursor:
					stats.by_capability[capability] = count
		return stats

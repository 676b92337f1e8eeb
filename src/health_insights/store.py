"""SQLite persistence for the daily insight set."""

import asyncio
import json
import sqlite3
from datetime import datetime
from pathlib import Path

import structlog

from .errors import PersistenceError
from .models import Evidence, Family, PersistedInsight, Severity
from .types import InsightRow

logger = structlog.get_logger(__name__)

TABLE = "daily_health_insights"


def _to_row(insight: PersistedInsight) -> InsightRow:
    return {
        "id": insight.id,
        "user_id": insight.user_id,
        "date": insight.date,
        "title": insight.title,
        "message": insight.message,
        "metric": insight.metric,
        "severity": insight.severity.value,
        "confidence": insight.confidence,
        "evidence": json.dumps(insight.evidence.to_dict(), sort_keys=True),
        "status": insight.status,
        "score": insight.score,
        "issued_by": insight.issued_by,
        "created_at": insight.created_at.isoformat(),
    }


def _from_row(row: sqlite3.Row) -> PersistedInsight:
    evidence = json.loads(row["evidence"])
    return PersistedInsight(
        id=row["id"],
        user_id=row["user_id"],
        date=row["date"],
        title=row["title"],
        message=row["message"],
        metric=row["metric"],
        severity=Severity(row["severity"]),
        confidence=row["confidence"],
        evidence=Evidence(
            family=Family(evidence["family"]),
            raw_score=evidence["raw_score"],
            rule_id=evidence["rule_id"],
        ),
        score=row["score"],
        created_at=datetime.fromisoformat(row["created_at"]),
        status=row["status"],
        issued_by=row["issued_by"],
    )


class InsightStore:
    """Stores each user's selected insights per local date.

    A day's set is always written as a whole: :meth:`replace_day` deletes
    the previous rows and inserts the new ones in one transaction.
    """

    def __init__(self, db_path: Path | str, busy_timeout_ms: int = 5000) -> None:
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file.
            busy_timeout_ms: How long a writer waits on a locked database.
        """
        self._db_path = Path(db_path)
        self._busy_timeout_ms = busy_timeout_ms
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        """Open a SQLite connection with safer concurrency settings."""
        conn = sqlite3.connect(self._db_path, timeout=self._busy_timeout_ms / 1000)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute(f"PRAGMA busy_timeout = {int(self._busy_timeout_ms)}")
        conn.row_factory = sqlite3.Row
        return conn

    async def initialize(self) -> None:
        """Create the table and indexes if they do not exist."""
        if self._initialized:
            return

        loop = asyncio.get_running_loop()

        def init_db() -> None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)

            with self._connect() as conn:
                conn.execute(f"""
                    CREATE TABLE IF NOT EXISTS {TABLE} (
                        id TEXT PRIMARY KEY,
                        user_id TEXT NOT NULL,
                        date TEXT NOT NULL,
                        title TEXT NOT NULL,
                        message TEXT NOT NULL,
                        metric TEXT NOT NULL,
                        severity TEXT NOT NULL,
                        confidence REAL NOT NULL,
                        evidence TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'active',
                        score REAL NOT NULL,
                        issued_by TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    )
                """)
                conn.execute(f"""
                    CREATE UNIQUE INDEX IF NOT EXISTS idx_insights_active_metric
                    ON {TABLE}(user_id, date, metric)
                    WHERE status = 'active'
                """)
                conn.execute(f"""
                    CREATE INDEX IF NOT EXISTS idx_insights_user_date
                    ON {TABLE}(user_id, date)
                """)
                conn.commit()

        await loop.run_in_executor(None, init_db)
        self._initialized = True
        logger.debug("insight_store_initialized", path=str(self._db_path))

    async def replace_day(
        self, user_id: str, local_date: str, insights: list[PersistedInsight]
    ) -> int:
        """Atomically replace all insights for one user and date.

        An empty list still deletes the day's existing rows.

        Returns:
            Number of rows deleted.

        Raises:
            PersistenceError: If the transaction fails; nothing is changed.
        """
        try:
            await self.initialize()
        except (sqlite3.Error, OSError) as e:
            logger.error("insight_store_init_failed", path=str(self._db_path), error=str(e))
            raise PersistenceError(user_id, local_date, e) from e

        rows = [_to_row(insight) for insight in insights]
        loop = asyncio.get_running_loop()

        def do_replace() -> int:
            conn = self._connect()
            try:
                # Context manager commits on success and rolls back on error
                with conn:
                    cursor = conn.execute(
                        f"DELETE FROM {TABLE} WHERE user_id = ? AND date = ?",
                        (user_id, local_date),
                    )
                    deleted = cursor.rowcount
                    conn.executemany(
                        f"""
                        INSERT INTO {TABLE} (
                            id, user_id, date, title, message, metric, severity,
                            confidence, evidence, status, score, issued_by, created_at
                        ) VALUES (
                            :id, :user_id, :date, :title, :message, :metric, :severity,
                            :confidence, :evidence, :status, :score, :issued_by, :created_at
                        )
                        """,
                        rows,
                    )
                return deleted
            finally:
                conn.close()

        try:
            deleted = await loop.run_in_executor(None, do_replace)
        except sqlite3.Error as e:
            logger.error(
                "insights_persist_failed",
                date=local_date,
                rows=len(rows),
                error=str(e),
            )
            raise PersistenceError(user_id, local_date, e) from e

        logger.info("insights_persisted", date=local_date, deleted=deleted, inserted=len(rows))
        return deleted

    async def list_day(self, user_id: str, local_date: str) -> list[PersistedInsight]:
        """Return the stored insights for one user and date, highest score first."""
        await self.initialize()
        loop = asyncio.get_running_loop()

        def do_list() -> list[PersistedInsight]:
            conn = self._connect()
            try:
                cursor = conn.execute(
                    f"""
                    SELECT * FROM {TABLE}
                    WHERE user_id = ? AND date = ? AND status = 'active'
                    ORDER BY score DESC, rowid
                    """,
                    (user_id, local_date),
                )
                return [_from_row(row) for row in cursor.fetchall()]
            finally:
                conn.close()

        return await loop.run_in_executor(None, do_list)

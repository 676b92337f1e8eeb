"""Tests for the SQLite insight store."""

import sqlite3
from datetime import UTC, datetime

import pytest

from health_insights.errors import PersistenceError
from health_insights.models import Evidence, Family, PersistedInsight, Severity
from health_insights.store import TABLE, InsightStore

CREATED_AT = datetime(2024, 1, 15, 18, 0, tzinfo=UTC)


def make_row(
    metric: str,
    score: float = 0.5,
    user_id: str = "user-1",
    date: str = "2024-01-15",
    family: Family = Family.OTHER,
) -> PersistedInsight:
    return PersistedInsight(
        id=f"{user_id}-{date}-{metric}",
        user_id=user_id,
        date=date,
        title=f"{metric} title",
        message=f"{metric} message",
        metric=metric,
        severity=Severity.NOTABLE,
        confidence=score,
        evidence=Evidence(family=family, raw_score=score, rule_id=f"{metric}-rule"),
        score=score,
        created_at=CREATED_AT,
    )


class TestInsightStore:
    """Tests for InsightStore."""

    @pytest.mark.asyncio
    async def test_replace_and_list(self, store):
        await store.replace_day(
            "user-1", "2024-01-15", [make_row("steps", 0.6, family=Family.ACTIVITY)]
        )

        rows = await store.list_day("user-1", "2024-01-15")

        assert len(rows) == 1
        row = rows[0]
        assert row.metric == "steps"
        assert row.status == "active"
        assert row.issued_by == "dynamic-engine"
        assert row.evidence == Evidence(family=Family.ACTIVITY, raw_score=0.6, rule_id="steps-rule")
        assert row.created_at == CREATED_AT

    @pytest.mark.asyncio
    async def test_replace_removes_previous_rows(self, store):
        await store.replace_day("user-1", "2024-01-15", [make_row("a"), make_row("b")])

        deleted = await store.replace_day("user-1", "2024-01-15", [make_row("c")])

        rows = await store.list_day("user-1", "2024-01-15")
        assert deleted == 2
        assert [r.metric for r in rows] == ["c"]

    @pytest.mark.asyncio
    async def test_empty_replace_clears_day(self, store):
        await store.replace_day("user-1", "2024-01-15", [make_row("a")])

        await store.replace_day("user-1", "2024-01-15", [])

        assert await store.list_day("user-1", "2024-01-15") == []

    @pytest.mark.asyncio
    async def test_equal_scores_keep_insertion_order(self, store):
        rows = [make_row("zeta", 0.5), make_row("alpha", 0.5), make_row("mid", 0.9)]
        await store.replace_day("user-1", "2024-01-15", rows)

        listed = await store.list_day("user-1", "2024-01-15")

        assert [r.metric for r in listed] == ["mid", "zeta", "alpha"]

    @pytest.mark.asyncio
    async def test_replace_is_idempotent(self, store):
        rows = [make_row("a", 0.9), make_row("b", 0.4)]

        await store.replace_day("user-1", "2024-01-15", rows)
        first = await store.list_day("user-1", "2024-01-15")
        await store.replace_day("user-1", "2024-01-15", rows)
        second = await store.list_day("user-1", "2024-01-15")

        assert first == second
        assert [r.metric for r in second] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_other_days_and_users_untouched(self, store):
        await store.replace_day("user-1", "2024-01-14", [make_row("a", date="2024-01-14")])
        await store.replace_day("user-2", "2024-01-15", [make_row("a", user_id="user-2")])

        await store.replace_day("user-1", "2024-01-15", [])

        assert len(await store.list_day("user-1", "2024-01-14")) == 1
        assert len(await store.list_day("user-2", "2024-01-15")) == 1

    @pytest.mark.asyncio
    async def test_duplicate_metric_fails_atomically(self, store):
        """A failed insert leaves the previous set in place."""
        await store.replace_day("user-1", "2024-01-15", [make_row("a")])
        duplicate = make_row("b")
        clash = PersistedInsight(**{**duplicate.__dict__, "id": "other-id"})

        with pytest.raises(PersistenceError) as exc_info:
            await store.replace_day("user-1", "2024-01-15", [duplicate, clash])

        assert isinstance(exc_info.value.cause, sqlite3.IntegrityError)
        rows = await store.list_day("user-1", "2024-01-15")
        assert [r.metric for r in rows] == ["a"]

    @pytest.mark.asyncio
    async def test_unique_active_metric_index(self, store, tmp_path):
        await store.initialize()

        conn = sqlite3.connect(tmp_path / "insights.db")
        try:
            indexes = {
                row[1]: row[2] for row in conn.execute(f"PRAGMA index_list('{TABLE}')")
            }
        finally:
            conn.close()

        assert indexes["idx_insights_active_metric"] == 1

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path):
        store = InsightStore(tmp_path / "nested" / "dir" / "insights.db")

        await store.replace_day("user-1", "2024-01-15", [make_row("a")])

        assert (tmp_path / "nested" / "dir" / "insights.db").exists()

    @pytest.mark.asyncio
    async def test_unwritable_path_raises_persistence_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        store = InsightStore(blocker / "insights.db")

        with pytest.raises(PersistenceError):
            await store.replace_day("user-1", "2024-01-15", [make_row("a")])

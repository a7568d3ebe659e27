"""Shared fixtures."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Optional

import pytest

from skillswap.cache.query_cache import QueryCache
from skillswap.data.models import Skill, SkillLevel, SkillType


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _matches(row: dict, filters: dict) -> bool:
    for column, value in filters.items():
        actual = row.get(column)
        if isinstance(value, tuple):
            op, operand = value
            if op == "neq":
                ok = actual != operand
            elif actual is None:
                ok = False
            elif op == "lt":
                ok = actual < operand
            elif op == "lte":
                ok = actual <= operand
            elif op == "gt":
                ok = actual > operand
            elif op == "gte":
                ok = actual >= operand
            else:
                raise ValueError(f"Unsupported operator {op}")
        elif isinstance(value, (list, set)):
            ok = actual in value
        elif value is None:
            ok = actual is None
        else:
            ok = actual == value
        if not ok:
            return False
    return True


class FakeSupabase:
    """In-memory stand-in for the generic table helpers of SupabaseClient."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self._next_id = 0

    def add(self, table: str, **row: Any) -> dict[str, Any]:
        self.tables[table].append(row)
        return row

    async def select(
        self,
        table: str,
        filters: Optional[dict] = None,
        *,
        columns: str = "*",
        order: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        rows = [dict(r) for r in self.tables[table] if _matches(r, filters or {})]
        if order:
            column, _, direction = order.partition(".")
            rows.sort(key=lambda r: r.get(column) or "", reverse=direction == "desc")
        rows = rows[offset or 0 :]
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def insert(self, table: str, data: dict) -> list[dict[str, Any]]:
        row = dict(data)
        if "id" not in row:
            self._next_id += 1
            row["id"] = f"{table}-{self._next_id}"
        self.tables[table].append(row)
        return [dict(row)]

    async def update(self, table: str, data: dict, filters: dict) -> list[dict[str, Any]]:
        changed = []
        for row in self.tables[table]:
            if _matches(row, filters):
                row.update(data)
                changed.append(dict(row))
        return changed

    async def delete(self, table: str, filters: dict) -> list[dict[str, Any]]:
        kept, removed = [], []
        for row in self.tables[table]:
            (removed if _matches(row, filters) else kept).append(row)
        self.tables[table] = kept
        return removed


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return QueryCache(default_ttl=300, clock=clock)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


def make_skill(
    id: str,
    user_id: str,
    title: str,
    category: str,
    level: SkillLevel = SkillLevel.INTERMEDIATE,
    type: SkillType = SkillType.OFFERING,
    **kwargs: Any,
) -> Skill:
    return Skill(
        id=id, user_id=user_id, title=title, category=category, level=level, type=type, **kwargs
    )


@pytest.fixture
def seeking_python():
    """A user looking for intermediate Python help."""
    return make_skill(
        "s1",
        "alice",
        "Python",
        "programming",
        SkillLevel.INTERMEDIATE,
        SkillType.SEEKING,
        description="Learn python scripting",
    )


@pytest.fixture
def offered_pool():
    """Offered skills from several users."""
    return [
        make_skill("o1", "bob", "Python tutoring", "programming", SkillLevel.INTERMEDIATE),
        make_skill("o2", "carol", "React", "web-development", SkillLevel.ADVANCED),
        make_skill("o3", "dave", "Guitar", "music", SkillLevel.EXPERT),
        make_skill("o4", "alice", "Python", "programming", SkillLevel.INTERMEDIATE),
    ]

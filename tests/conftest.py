"""Shared fixtures: a controllable clock, a staging store and an accounts DB.

The staging store reads time only through an injected clock, so expiry is
tested by advancing :class:`FakeClock` rather than sleeping. Account tests
run against a private in-memory SQLite database per test.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from statement_import.db.client import create_schema
from statement_import.pending_imports import PendingImportStore


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 2, 1, 12, 0, tzinfo=UTC))


@pytest.fixture()
def store(clock: FakeClock) -> PendingImportStore:
    return PendingImportStore(clock=clock)


@pytest.fixture()
def session() -> Iterator[Session]:
    engine = create_engine("sqlite+pysqlite:///:memory:")
    create_schema(engine)
    with Session(engine) as s:
        yield s
    engine.dispose()

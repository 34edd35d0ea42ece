"""Shared fixtures for the registry tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from mentorship.core import MentorshipCore, open_core
from mentorship.database import Database


class FakeClock:
    """Deterministic clock that advances one minute per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 4, 30, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current = value + timedelta(minutes=1)
        return value


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def core(clock: FakeClock) -> MentorshipCore:
    return MentorshipCore.in_memory(clock=clock)


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "mentorship.sqlite3")
    db.initialize()
    return db


@pytest.fixture()
def durable_core(database: Database, clock: FakeClock) -> MentorshipCore:
    return open_core(database, clock=clock)

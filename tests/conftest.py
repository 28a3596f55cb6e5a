"""Shared fixtures: an isolated workspace, an in-memory store and a recording sleep."""

from __future__ import annotations

import pytest

from uniscope.db import SQLiteStore, get_connection, init_db


class RecordingSleep:
    """Async stand-in for ``asyncio.sleep`` that only records the delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture(autouse=True)
def isolated_workspace(tmp_path, monkeypatch):
    """Point the workspace (and so the default DB path) at a temp directory."""
    monkeypatch.setattr("uniscope.config.settings.workspace_dir", tmp_path)
    return tmp_path


@pytest.fixture()
def conn():
    """Fresh in-memory DB for each test."""
    c = get_connection(db_path=":memory:")
    init_db(c)
    yield c
    c.close()


@pytest.fixture()
def store(conn) -> SQLiteStore:
    return SQLiteStore(conn)


@pytest.fixture()
def sleeps() -> RecordingSleep:
    return RecordingSleep()

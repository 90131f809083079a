from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

from todo_gateway.app.config import Settings
from todo_gateway.app.deps import build_runtime
from todo_gateway.main import create_app


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite file per test."""
    return Settings(database_url=f"sqlite:///{tmp_path / 'todo.db'}", db_retry_interval=10.0)


@pytest.fixture()
def runtime(settings: Settings):
    rt = build_runtime(settings)
    yield rt
    rt.close()


@pytest.fixture()
def app(settings: Settings, runtime):
    return create_app(settings, runtime)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def statements(runtime, client) -> list[str]:
    """SQL statements issued after app startup (schema creation excluded)."""

    issued: list[str] = []

    def _record(_conn, _cursor, statement, _params, _context, _executemany) -> None:
        issued.append(statement)

    event.listen(runtime.engine, "before_cursor_execute", _record)
    yield issued
    event.remove(runtime.engine, "before_cursor_execute", _record)

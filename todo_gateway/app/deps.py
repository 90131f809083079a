"""Runtime wiring shared by both hosting shells, plus FastAPI dependency providers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.engine import Engine

from todo_gateway.adapters.task_repository_sql import SQLTaskRepository
from todo_gateway.app.config import Settings
from todo_gateway.app.connectivity import ConnectivityTracker
from todo_gateway.app.db import build_engine
from todo_gateway.app.handlers import TaskHandlers

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    engine: Engine
    tracker: ConnectivityTracker
    handlers: TaskHandlers

    def close(self) -> None:
        self.engine.dispose()


def build_runtime(settings: Settings) -> Runtime:
    """Create the engine, repository, tracker and handlers for one process."""

    engine = build_engine(settings.database_url)
    repo = SQLTaskRepository(engine)
    tracker = ConnectivityTracker(repo.ensure_schema, retry_interval=settings.db_retry_interval)
    tracker.bind_engine_events(engine)
    logger.info("runtime ready dialect=%s", engine.dialect.name)
    return Runtime(engine=engine, tracker=tracker, handlers=TaskHandlers(repo, tracker))


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


def get_task_handlers(request: Request) -> TaskHandlers:
    return get_runtime(request).handlers

"""Hosting-agnostic task request handlers.

Each operation maps request data to a ``HandlerResult`` (status code plus a
JSON-ready body). The FastAPI routes and the serverless entry point are thin
adapters over this module and hand request bodies over undecoded, so the
connectivity gate runs before body parsing.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import date, datetime
from typing import Any, Callable, NamedTuple, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from todo_gateway.app.connectivity import ConnectivityTracker
from todo_gateway.app.core.errors import InvalidBodyError, TaskValidationError, error_message
from todo_gateway.app.schemas import TaskCreate, TaskUpdate
from todo_gateway.app.utils.timing import log_op_timing
from todo_gateway.ports.task_repository import ITaskRepository

logger = logging.getLogger(__name__)

UNAVAILABLE_BODY = {
    "error": "Database unavailable",
    "message": "Service temporarily unavailable. Please try again later.",
}
NOT_FOUND_BODY = {"error": "Task not found"}

TITLE_REQUIRED = "Title is required and must be a string"
TITLE_NOT_STRING = "Title must be a string"
STATE_NOT_BOOLEAN = "State must be a boolean"


class HandlerResult(NamedTuple):
    status_code: int
    body: Any


def internal_error(exc: BaseException) -> HandlerResult:
    return HandlerResult(500, {"error": "Internal server error", "message": str(exc)})


def decode_body(raw: Union[bytes, str, None]) -> Any:
    """Decode a raw request body; an empty body reads as ``{}``."""

    if raw is None:
        return {}
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidBodyError("Invalid JSON body", cause=exc) from exc
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise InvalidBodyError("Invalid JSON body", cause=exc) from exc


def _require_object(body: Any) -> dict:
    """Accept an already decoded body, or raw bytes/str straight from a shell."""

    if body is None or isinstance(body, (bytes, str)):
        body = decode_body(body)
    if not isinstance(body, dict):
        raise InvalidBodyError("Request body must be a JSON object")
    return body


def _timestamp(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value if value is None else str(value)


def _update_error(exc: ValidationError) -> str:
    for err in exc.errors():
        if err["loc"] and err["loc"][0] == "state":
            return STATE_NOT_BOOLEAN
        if err["loc"] and err["loc"][0] == "title":
            return TITLE_NOT_STRING
    return TITLE_NOT_STRING


class TaskHandlers:
    def __init__(
        self,
        repo: ITaskRepository,
        tracker: ConnectivityTracker,
        *,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._repo = repo
        self._tracker = tracker
        self._id_factory = id_factory

    @property
    def tracker(self) -> ConnectivityTracker:
        return self._tracker

    # ---- helpers ----

    def _database_error(self, op: str, exc: Exception) -> HandlerResult:
        message = error_message(exc)
        logger.error("database query error: %s", message, extra={"op": op})
        self._tracker.mark_unavailable(message)
        return HandlerResult(500, {"error": "Database error", "message": message})

    def _run(
        self,
        op: str,
        action: Callable[[], HandlerResult],
        *,
        task_id: Optional[str] = None,
    ) -> HandlerResult:
        start = time.perf_counter()
        if not self._tracker.is_available():
            result = HandlerResult(503, dict(UNAVAILABLE_BODY))
        else:
            try:
                result = action()
            except TaskValidationError as exc:
                result = HandlerResult(400, {"error": exc.message})
            except SQLAlchemyError as exc:
                result = self._database_error(op, exc)
        log_op_timing(
            logger, op=op, start_time=start, status_code=result.status_code, task_id=task_id
        )
        return result

    # ---- operations ----

    def health(self) -> HandlerResult:
        """Report reachability as data; always a 200."""

        try:
            now = self._repo.ping()
        except Exception as exc:
            return HandlerResult(
                200,
                {"status": "unhealthy", "database": "disconnected", "error": error_message(exc)},
            )
        return HandlerResult(
            200, {"status": "healthy", "database": "connected", "timestamp": _timestamp(now)}
        )

    def list_tasks(self) -> HandlerResult:
        return self._run("list", lambda: HandlerResult(200, self._repo.list()))

    def get_task(self, task_id: str) -> HandlerResult:
        def action() -> HandlerResult:
            task = self._repo.get(task_id)
            if task is None:
                return HandlerResult(404, dict(NOT_FOUND_BODY))
            return HandlerResult(200, task)

        return self._run("get", action, task_id=task_id)

    def create_task(self, body: Any) -> HandlerResult:
        def action() -> HandlerResult:
            try:
                payload = TaskCreate.model_validate(_require_object(body))
            except ValidationError as exc:
                raise TaskValidationError(TITLE_REQUIRED, cause=exc) from exc
            task = self._repo.create(self._id_factory(), payload.title, payload.state)
            return HandlerResult(201, task)

        return self._run("create", action)

    def update_task(self, task_id: str, body: Any) -> HandlerResult:
        def action() -> HandlerResult:
            fields = _require_object(body)

            current = self._repo.get(task_id)
            if current is None:
                return HandlerResult(404, dict(NOT_FOUND_BODY))

            try:
                payload = TaskUpdate.model_validate(fields)
            except ValidationError as exc:
                raise TaskValidationError(_update_error(exc), cause=exc) from exc

            changes = payload.changes()
            if not changes:
                return HandlerResult(200, current)

            updated = self._repo.update(task_id, changes)
            if updated is None:
                # deleted concurrently between the existence check and the update
                return HandlerResult(404, dict(NOT_FOUND_BODY))
            return HandlerResult(200, updated)

        return self._run("update", action, task_id=task_id)

    def delete_task(self, task_id: str) -> HandlerResult:
        def action() -> HandlerResult:
            task = self._repo.delete(task_id)
            if task is None:
                return HandlerResult(404, dict(NOT_FOUND_BODY))
            return HandlerResult(200, task)

        return self._run("delete", action, task_id=task_id)

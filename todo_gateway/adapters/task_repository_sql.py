"""SQL-backed task repository (SQLAlchemy Core over the tasks table)."""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

from sqlalchemy import delete, insert, select, text, update
from sqlalchemy.engine import Engine, Row

from todo_gateway.app.models import Task
from todo_gateway.ports.task_repository import ITaskRepository, TaskRecord

UPDATABLE_COLUMNS = ("title", "state")

_tasks = Task.__table__


def _to_record(row: Optional[Row]) -> Optional[TaskRecord]:
    if row is None:
        return None
    return {"id": row.id, "title": row.title, "state": bool(row.state)}


class SQLTaskRepository(ITaskRepository):
    """Every call runs in its own short transaction, committed on exit."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def ping(self) -> Any:
        with self._engine.connect() as conn:
            return conn.execute(text("SELECT CURRENT_TIMESTAMP")).scalar()

    def ensure_schema(self) -> None:
        _tasks.create(bind=self._engine, checkfirst=True)

    def list(self) -> list[TaskRecord]:
        with self._engine.connect() as conn:
            rows = conn.execute(select(_tasks).order_by(_tasks.c.id.asc())).all()
        return [_to_record(row) for row in rows]

    def get(self, task_id: str) -> Optional[TaskRecord]:
        with self._engine.connect() as conn:
            row = conn.execute(select(_tasks).where(_tasks.c.id == task_id)).first()
        return _to_record(row)

    def create(self, task_id: str, title: str, state: bool) -> TaskRecord:
        stmt = (
            insert(_tasks)
            .values(id=task_id, title=title, state=state)
            .returning(*_tasks.c)
        )
        with self._engine.begin() as conn:
            row = conn.execute(stmt).one()
        return _to_record(row)

    def update(self, task_id: str, changes: Sequence[Tuple[str, Any]]) -> Optional[TaskRecord]:
        if not changes:
            return self.get(task_id)
        assignments = []
        for column, value in changes:
            if column not in UPDATABLE_COLUMNS:
                raise ValueError(f"column not updatable: {column}")
            assignments.append((_tasks.c[column], value))
        # SET clause and bound parameters follow the order of ``changes``;
        # the row id is bound last in the WHERE clause.
        stmt = (
            update(_tasks)
            .ordered_values(*assignments)
            .where(_tasks.c.id == task_id)
            .returning(*_tasks.c)
        )
        with self._engine.begin() as conn:
            row = conn.execute(stmt).first()
        return _to_record(row)

    def delete(self, task_id: str) -> Optional[TaskRecord]:
        stmt = delete(_tasks).where(_tasks.c.id == task_id).returning(*_tasks.c)
        with self._engine.begin() as conn:
            row = conn.execute(stmt).first()
        return _to_record(row)

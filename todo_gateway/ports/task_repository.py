"""Port interface for task persistence (repository boundary)."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, Tuple, runtime_checkable

TaskRecord = dict[str, Any]


@runtime_checkable
class ITaskRepository(Protocol):
    """Task repository abstraction used by the request handlers."""

    def ping(self) -> Any:
        """Run a trivial liveness query and return the database timestamp."""

    def ensure_schema(self) -> None:
        """Create the tasks table when it does not exist yet."""

    def list(self) -> list[TaskRecord]:
        """Return every task ordered by id ascending."""

    def get(self, task_id: str) -> Optional[TaskRecord]:
        """Return a task by id or None when missing."""

    def create(self, task_id: str, title: str, state: bool) -> TaskRecord:
        """Insert a task and return the stored row."""

    def update(self, task_id: str, changes: Sequence[Tuple[str, Any]]) -> Optional[TaskRecord]:
        """Apply ordered (column, value) changes in one statement; None when missing."""

    def delete(self, task_id: str) -> Optional[TaskRecord]:
        """Delete a task and return the removed row; None when missing."""

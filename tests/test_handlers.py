from __future__ import annotations

from sqlalchemy.exc import OperationalError

from todo_gateway.app.connectivity import ConnectivityTracker
from todo_gateway.app.handlers import HandlerResult, TaskHandlers, decode_body


class FakeRepo:
    """
    In-memory repository recording every call.

    Keeps handler tests about request semantics: gating, validation order
    and the shape of partial updates.
    """

    def __init__(self) -> None:
        self.rows: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.fail_with: Exception | None = None

    def _call(self, *call):
        self.calls.append(call)
        if self.fail_with is not None:
            raise self.fail_with

    def ping(self):
        self._call("ping")
        return "2026-01-01 00:00:00"

    def ensure_schema(self):
        self._call("ensure_schema")

    def list(self):
        self._call("list")
        return [dict(self.rows[k]) for k in sorted(self.rows)]

    def get(self, task_id):
        self._call("get", task_id)
        row = self.rows.get(task_id)
        return dict(row) if row else None

    def create(self, task_id, title, state):
        self._call("create", task_id, title, state)
        self.rows[task_id] = {"id": task_id, "title": title, "state": state}
        return dict(self.rows[task_id])

    def update(self, task_id, changes):
        self._call("update", task_id, list(changes))
        row = self.rows.get(task_id)
        if row is None:
            return None
        row.update(dict(changes))
        return dict(row)

    def delete(self, task_id):
        self._call("delete", task_id)
        row = self.rows.pop(task_id, None)
        return dict(row) if row else None


def _handlers(repo: FakeRepo, *, available: bool = True) -> TaskHandlers:
    tracker = ConnectivityTracker(lambda: None)
    if available:
        tracker.mark_available()
    ids = iter(f"id-{n:03d}" for n in range(1000))
    return TaskHandlers(repo, tracker, id_factory=lambda: next(ids))


def test_decode_body_empty_and_invalid() -> None:
    assert decode_body(None) == {}
    assert decode_body(b"  ") == {}
    assert decode_body('{"a": 1}') == {"a": 1}


def test_create_assigns_generated_id() -> None:
    repo = FakeRepo()
    result = _handlers(repo).create_task({"title": "buy milk"})
    assert result == HandlerResult(201, {"id": "id-000", "title": "buy milk", "state": False})
    assert repo.calls == [("create", "id-000", "buy milk", False)]


def test_create_validation_issues_no_query() -> None:
    repo = FakeRepo()
    result = _handlers(repo).create_task(b'{"title": 3}')
    assert result.status_code == 400
    assert repo.calls == []


def test_update_changes_follow_field_order() -> None:
    repo = FakeRepo()
    handlers = _handlers(repo)
    handlers.create_task({"title": "a"})
    repo.calls.clear()

    result = handlers.update_task("id-000", {"state": True, "title": "b"})
    assert result == HandlerResult(200, {"id": "id-000", "title": "b", "state": True})
    assert repo.calls == [
        ("get", "id-000"),
        ("update", "id-000", [("title", "b"), ("state", True)]),
    ]


def test_update_only_supplied_fields() -> None:
    repo = FakeRepo()
    handlers = _handlers(repo)
    handlers.create_task({"title": "a"})
    repo.calls.clear()

    handlers.update_task("id-000", {"state": True})
    assert repo.calls[-1] == ("update", "id-000", [("state", True)])


def test_update_missing_task_never_mutates() -> None:
    repo = FakeRepo()
    result = _handlers(repo).update_task("ghost", {"title": "x"})
    assert result == HandlerResult(404, {"error": "Task not found"})
    assert repo.calls == [("get", "ghost")]


def test_update_missing_task_is_404_even_with_bad_fields() -> None:
    repo = FakeRepo()
    result = _handlers(repo).update_task("ghost", {"state": "yes"})
    assert result == HandlerResult(404, {"error": "Task not found"})
    assert repo.calls == [("get", "ghost")]


def test_noop_update_skips_update_statement() -> None:
    repo = FakeRepo()
    handlers = _handlers(repo)
    created = handlers.create_task({"title": "a"}).body
    repo.calls.clear()

    assert handlers.update_task("id-000", {}) == HandlerResult(200, created)
    assert repo.calls == [("get", "id-000")]


def test_gate_closed_short_circuits_every_operation() -> None:
    repo = FakeRepo()
    handlers = _handlers(repo, available=False)

    results = [
        handlers.list_tasks(),
        handlers.get_task("a"),
        handlers.create_task({"title": "a"}),
        handlers.update_task("a", {"title": "b"}),
        handlers.delete_task("a"),
    ]
    assert {r.status_code for r in results} == {503}
    assert repo.calls == []


def test_health_ignores_gate() -> None:
    repo = FakeRepo()
    result = _handlers(repo, available=False).health()
    assert result == HandlerResult(
        200, {"status": "healthy", "database": "connected", "timestamp": "2026-01-01 00:00:00"}
    )


def test_database_error_clears_flag() -> None:
    repo = FakeRepo()
    handlers = _handlers(repo)
    repo.fail_with = OperationalError("SELECT", {}, Exception("connection reset"))

    result = handlers.get_task("a")
    assert result == HandlerResult(500, {"error": "Database error", "message": "connection reset"})
    assert handlers.tracker.is_available() is False
    assert handlers.tracker.last_error == "connection reset"


def test_health_failure_is_reported_not_raised() -> None:
    repo = FakeRepo()
    handlers = _handlers(repo)
    repo.fail_with = OperationalError("SELECT", {}, Exception("timeout"))

    result = handlers.health()
    assert result == HandlerResult(
        200, {"status": "unhealthy", "database": "disconnected", "error": "timeout"}
    )

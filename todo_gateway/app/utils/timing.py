from __future__ import annotations

import time
from typing import Any


def log_op_timing(
    logger,
    *,
    op: str,
    start_time: float,
    status_code: int,
    task_id: str | None = None,
) -> None:
    elapsed_ms = int((time.perf_counter() - start_time) * 1000)
    payload: dict[str, Any] = {"status_code": status_code}
    extra: dict[str, Any] = {"op": op, "elapsed_ms": elapsed_ms}
    if task_id:
        extra["task"] = task_id
    logger.info("op_timing %s", payload, extra=extra)

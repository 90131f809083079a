import logging
import os
from typing import Optional

# Extra fields every record is rendered with; "-" when the caller omits them.
STRUCTURED_FIELDS = ("task", "op", "elapsed_ms")

LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s "
    "task=%(task)s op=%(op)s elapsed_ms=%(elapsed_ms)s "
    "%(message)s"
)

_CONFIGURED = False


class SafeFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        if "task" not in record.__dict__ and "task_id" in record.__dict__:
            record.__dict__["task"] = record.__dict__["task_id"]
        for key in STRUCTURED_FIELDS:
            record.__dict__.setdefault(key, "-")
        return super().format(record)


def _resolve_level(level: Optional[str]) -> int:
    level_name = (level or os.getenv("APP_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(level: Optional[str] = None) -> None:
    """Install one stream handler on the root logger (idempotent).

    uvicorn's loggers are routed through the root handler so server and
    application lines share the same format.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved_level = _resolve_level(level)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(SafeFormatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(resolved_level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.setLevel(resolved_level)
        server_logger.propagate = True

    _CONFIGURED = True

"""Database reachability tracking.

``ConnectivityTracker`` holds the process-wide answer to "can we currently
reach the database?". It is a liveness heuristic: handlers still have to flip
it off when a query fails between checks. ``ConnectivityMonitor`` owns the
periodic reconnect loop for long-running processes.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine

from todo_gateway.app.core.errors import error_message

logger = logging.getLogger(__name__)

DEFAULT_RETRY_INTERVAL = 10.0


class ConnectivityTracker:
    def __init__(
        self,
        initializer: Callable[[], None],
        *,
        retry_interval: float = DEFAULT_RETRY_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._initializer = initializer
        self._retry_interval = retry_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._available = False
        self._last_error: Optional[str] = None
        self._last_attempt: Optional[float] = None

    @property
    def retry_interval(self) -> float:
        return self._retry_interval

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._last_error

    def is_available(self) -> bool:
        with self._lock:
            return self._available

    def mark_available(self) -> None:
        with self._lock:
            was_available = self._available
            self._available = True
            self._last_error = None
        if not was_available:
            logger.info("database marked available")

    def mark_unavailable(self, error: Optional[str] = None) -> None:
        with self._lock:
            was_available = self._available
            self._available = False
            if error:
                self._last_error = error
        if was_available:
            logger.warning("database marked unavailable: %s", error or "unknown error")

    def initialize(self) -> bool:
        """Create the tasks table if needed; never raises."""

        with self._lock:
            self._last_attempt = self._clock()
        try:
            self._initializer()
        except Exception as exc:
            message = error_message(exc)
            self.mark_unavailable(message)
            logger.error("database initialization failed: %s", message)
            return False
        self.mark_available()
        logger.info("database connected and initialized")
        return True

    def ensure_connection(self) -> bool:
        if self.is_available():
            return True
        return self.initialize()

    def ensure_connection_if_due(self) -> bool:
        """Retry only when the previous attempt is older than the retry interval."""

        with self._lock:
            if self._available:
                return True
            last_attempt = self._last_attempt
        if last_attempt is not None and self._clock() - last_attempt < self._retry_interval:
            return False
        return self.initialize()

    def bind_engine_events(self, engine: Engine) -> None:
        """Follow connection lifecycle events emitted by ``engine`` and its pool."""

        def _on_connect(_dbapi_connection, _connection_record) -> None:
            logger.debug("new database connection established")
            self.mark_available()

        def _on_handle_error(context) -> None:
            if context.is_disconnect:
                self.mark_unavailable(error_message(context.original_exception))

        def _on_invalidate(_dbapi_connection, _connection_record, exception) -> None:
            if exception is not None:
                self.mark_unavailable(error_message(exception))

        event.listen(engine, "connect", _on_connect)
        event.listen(engine, "handle_error", _on_handle_error)
        event.listen(engine.pool, "invalidate", _on_invalidate)


class ConnectivityMonitor:
    """Cancellable background loop calling ``ensure_connection`` on a fixed interval."""

    def __init__(
        self,
        tracker: ConnectivityTracker,
        *,
        interval: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._tracker = tracker
        self._interval = tracker.retry_interval if interval is None else interval
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            await self._sleep(self._interval)
            if not self._tracker.is_available():
                await asyncio.to_thread(self._tracker.ensure_connection)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

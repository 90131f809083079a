"""
Serverless entry point - AWS Lambda handler for API Gateway proxy events.

The FastAPI application from ``todo_gateway.main`` is served through Mangum,
so REST API (payload v1) and HTTP API (payload v2) events reach the same
routes, validation and CORS handling as the standalone server.

There is no background reconnect loop in a function runtime (the ASGI
lifespan is off); the schema is initialized on cold start and reconnects are
retried lazily, at most once per retry interval, when an invocation arrives
while the database is down.
"""

import json
import logging
from typing import Any, Dict, Optional

from mangum import Mangum

from todo_gateway.app.config import get_settings
from todo_gateway.app.core.logging_config import configure_logging
from todo_gateway.app.deps import Runtime, build_runtime
from todo_gateway.app.handlers import internal_error
from todo_gateway.main import create_app

logger = logging.getLogger(__name__)

ERROR_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
}

# Lazy initialization so importing this module never touches the database
_runtime: Optional[Runtime] = None
_asgi_handler: Optional[Mangum] = None


def get_runtime() -> Runtime:
    global _runtime

    if _runtime is None:
        settings = get_settings()
        configure_logging(settings.log_level)
        runtime = build_runtime(settings)
        runtime.tracker.initialize()
        _runtime = runtime
    return _runtime


def get_asgi_handler() -> Mangum:
    global _asgi_handler

    if _asgi_handler is None:
        application = create_app(get_settings(), get_runtime())
        _asgi_handler = Mangum(application, lifespan="off")
    return _asgi_handler


def reset_runtime() -> None:
    """Dispose the cached runtime (tests, or a container being recycled)."""
    global _runtime, _asgi_handler

    if _runtime is not None:
        _runtime.close()
    _runtime = None
    _asgi_handler = None


def handler(event, context) -> Dict[str, Any]:
    """
    AWS Lambda handler for HTTP requests via API Gateway.

    Reconnects first when a retry is due, then hands the event to the ASGI
    app. Failures outside the app (building the runtime, for instance) still
    answer with the 500 JSON body.
    """
    try:
        runtime = get_runtime()
        runtime.tracker.ensure_connection_if_due()
        asgi = get_asgi_handler()
    except Exception as e:
        logger.exception(f"Serverless handler failed before dispatch: {e}")
        if _runtime is not None:
            _runtime.tracker.mark_unavailable(str(e))
        result = internal_error(e)
        return {
            "statusCode": result.status_code,
            "headers": dict(ERROR_HEADERS),
            "body": json.dumps(result.body),
        }

    return asgi(event, context)

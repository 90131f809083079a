import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from todo_gateway.app.config import Settings, get_settings
from todo_gateway.app.connectivity import ConnectivityMonitor
from todo_gateway.app.core.logging_config import configure_logging
from todo_gateway.app.deps import Runtime, build_runtime
from todo_gateway.app.handlers import internal_error
from todo_gateway.routes import tasks

logger = logging.getLogger(__name__)


def _install_loop_exception_handler(runtime: Runtime) -> None:
    """Log faults from background tasks and degrade instead of crashing."""

    loop = asyncio.get_running_loop()

    def _handle(loop, context) -> None:
        exc = context.get("exception")
        message = str(exc) if exc is not None else context.get("message", "unknown error")
        logger.error("unhandled event loop error: %s", message, exc_info=exc)
        runtime.tracker.mark_unavailable(message)

    loop.set_exception_handler(_handle)


def create_app(settings: Optional[Settings] = None, runtime: Optional[Runtime] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    runtime = runtime or build_runtime(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _install_loop_exception_handler(runtime)
        await asyncio.to_thread(runtime.tracker.initialize)
        monitor = ConnectivityMonitor(runtime.tracker)
        monitor.start()
        app.state.monitor = monitor
        try:
            yield
        finally:
            logger.info("shutting down: stopping reconnect loop and closing pool")
            await monitor.stop()
            runtime.close()

    app = FastAPI(
        title="Todo Gateway",
        version="1.0.0",
        docs_url="/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes catch their own failures so CORS headers apply. This handler runs in
    # ServerErrorMiddleware, outside CORSMiddleware, and only sees errors raised
    # before a route body runs (dependency resolution, request parsing).
    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        runtime.tracker.mark_unavailable(str(exc))
        result = internal_error(exc)
        return JSONResponse(status_code=result.status_code, content=result.body)

    app.include_router(tasks.status_router)
    app.include_router(tasks.router)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve ``app`` with uvicorn until SIGINT/SIGTERM."""

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()

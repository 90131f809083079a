"""Task API and health routes for the standalone server."""

import asyncio
import logging
from typing import Any, Callable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from todo_gateway.app.deps import get_runtime, get_task_handlers
from todo_gateway.app.handlers import HandlerResult, TaskHandlers, internal_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])
status_router = APIRouter(tags=["status"])


def _respond(result: HandlerResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body)


async def _serve(request: Request, operation: Callable[..., HandlerResult], *args: Any) -> JSONResponse:
    """Run a handler off the event loop; unexpected failures still answer through CORS."""

    try:
        result = await asyncio.to_thread(operation, *args)
    except Exception as exc:
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        get_runtime(request).tracker.mark_unavailable(str(exc))
        result = internal_error(exc)
    return _respond(result)


@status_router.get("/status")
async def status(request: Request, handlers: TaskHandlers = Depends(get_task_handlers)):
    """Database health check; always answers 200."""

    return await _serve(request, handlers.health)


@router.get("")
async def list_tasks(request: Request, handlers: TaskHandlers = Depends(get_task_handlers)):
    return await _serve(request, handlers.list_tasks)


@router.get("/{task_id}")
async def get_task(task_id: str, request: Request, handlers: TaskHandlers = Depends(get_task_handlers)):
    return await _serve(request, handlers.get_task, task_id)


@router.post("")
async def create_task(request: Request, handlers: TaskHandlers = Depends(get_task_handlers)):
    # Raw body goes to the handler so the connectivity gate runs before parsing.
    raw = await request.body()
    return await _serve(request, handlers.create_task, raw)


@router.put("/{task_id}")
async def update_task(
    task_id: str, request: Request, handlers: TaskHandlers = Depends(get_task_handlers)
):
    raw = await request.body()
    return await _serve(request, handlers.update_task, task_id, raw)


@router.delete("/{task_id}")
async def delete_task(task_id: str, request: Request, handlers: TaskHandlers = Depends(get_task_handlers)):
    return await _serve(request, handlers.delete_task, task_id)


__all__ = ["router", "status_router"]

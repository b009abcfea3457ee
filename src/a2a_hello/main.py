"""
Hello World A2A Agent - Main Application

A2A protocol server using JSON-RPC 2.0 over HTTP. Serves the agent card,
runs ``message/send`` and ``message/stream`` through the execution engine,
and exposes the task store through ``tasks/get``, ``tasks/list`` and
``tasks/cancel``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, Optional, Type, TypeVar

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel, ValidationError
from starlette.background import BackgroundTask

from .a2a import __version__
from .a2a.models import (
    JSONRPCErrorResponse,
    JSONRPCRequest,
    JSONRPCSuccessResponse,
    ListTasksParams,
    ListTasksResult,
    MessageSendParams,
    Task,
    TaskIdParams,
    TaskQueryParams,
    create_context_id,
    create_task_id,
    serialize_a2a,
)
from .agent import HelloWorldResponder, Responder
from .agent_card import build_agent_card
from .errors import (
    A2AError,
    InternalError,
    InvalidParamsError,
    MethodNotFoundError,
    ParseError,
    TaskNotFoundError,
)
from .executor import AgentExecutor
from .logging_config import configure_logging
from .settings import Settings, get_settings
from .streaming import SSETransport, StreamRelay
from .task_store import InMemoryTaskStore

logger = logging.getLogger(__name__)

ParamsT = TypeVar("ParamsT", bound=BaseModel)
MethodHandler = Callable[[Dict[str, Any], Request], Awaitable[Any]]

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    configure_logging(app.state.settings.agent_name)
    logger.info(
        "A2A agent started",
        extra={"agent_name": app.state.settings.agent_name, "version": __version__},
    )

    yield

    # Let in-flight streams store their final task before shutting down.
    pending = list(app.state.stream_tasks)
    if pending:
        logger.info("Waiting for in-flight streams", extra={"count": len(pending)})
        await asyncio.gather(*pending, return_exceptions=True)
    logger.info("A2A agent shutdown")


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_task_store(request: Request) -> InMemoryTaskStore:
    return request.app.state.task_store


def get_executor(request: Request) -> AgentExecutor:
    return request.app.state.executor


def get_stream_relay(request: Request) -> StreamRelay:
    return request.app.state.stream_relay


def _parse_params(model: Type[ParamsT], params: Dict[str, Any]) -> ParamsT:
    try:
        return model.model_validate(params)
    except ValidationError as exc:
        raise InvalidParamsError(data=json.loads(exc.json(include_url=False))) from exc


def _success_response(request_id: Any, result: Any) -> JSONResponse:
    body = JSONRPCSuccessResponse(id=request_id, result=serialize_a2a(result))
    return JSONResponse(body.model_dump(mode="json"))


def _error_response(request_id: Any, error: A2AError) -> JSONResponse:
    body = JSONRPCErrorResponse(id=request_id, error=error.to_jsonrpc_error())
    return JSONResponse(body.model_dump(mode="json"), status_code=error.http_status)


def _load_json_body(raw: bytes) -> Dict[str, Any]:
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError("Parse error: Invalid JSON payload") from exc

    if not isinstance(body, dict):
        raise ParseError("Parse error: Invalid JSON-RPC request")
    return body


def _salvage_request_id(body: Dict[str, Any]) -> Any:
    request_id = body.get("id")
    if isinstance(request_id, (str, int)) and not isinstance(request_id, bool):
        return request_id
    return None


def _validate_envelope(body: Dict[str, Any]) -> JSONRPCRequest:
    """Validate the JSON-RPC 2.0 envelope (``jsonrpc == "2.0"``, string method)."""
    try:
        return JSONRPCRequest.model_validate(body)
    except ValidationError as exc:
        raise ParseError("Parse error: Invalid JSON-RPC request") from exc


def _resolve_ids(message_params: MessageSendParams) -> tuple[str, str]:
    task_id = message_params.taskId or create_task_id()
    context_id = message_params.message.contextId or create_context_id()
    return task_id, context_id


async def handle_message_send(params: Dict[str, Any], request: Request) -> Task:
    """Handle message/send: run the task to completion and store it."""
    message_params = _parse_params(MessageSendParams, params)
    task_id, context_id = _resolve_ids(message_params)

    task = await get_executor(request).execute_send(task_id, context_id, message_params.message)
    await get_task_store(request).put(task)

    logger.info(
        "Message processed successfully",
        extra={"task_id": task.id, "context_id": context_id, "state": task.status.state.value},
    )
    return task


async def _await_stream(runner: asyncio.Task) -> None:
    await runner


async def handle_message_stream(params: Dict[str, Any], request: Request) -> StreamingResponse:
    """Handle message/stream: relay task events to the client as SSE."""
    message_params = _parse_params(MessageSendParams, params)
    task_id, context_id = _resolve_ids(message_params)

    transport = SSETransport()
    runner = asyncio.create_task(
        get_stream_relay(request).run(task_id, context_id, message_params.message, transport)
    )
    stream_tasks = request.app.state.stream_tasks
    stream_tasks.add(runner)
    runner.add_done_callback(stream_tasks.discard)

    return StreamingResponse(
        transport.frames(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
        background=BackgroundTask(_await_stream, runner),
    )


async def handle_tasks_get(params: Dict[str, Any], request: Request) -> Task:
    """Handle tasks/get."""
    query = _parse_params(TaskQueryParams, params)

    task = await get_task_store(request).get(query.taskId)
    if task is None:
        raise TaskNotFoundError(data={"taskId": query.taskId})

    if query.historyLength and len(task.history) > query.historyLength:
        task = task.model_copy(update={"history": task.history[-query.historyLength:]})

    return task


async def handle_tasks_list(params: Dict[str, Any], request: Request) -> ListTasksResult:
    """Handle tasks/list."""
    list_params = _parse_params(ListTasksParams, params)
    task_store = get_task_store(request)

    offset = list_params.offset or 0
    limit = list_params.limit or get_settings_from_app(request).default_page_size

    tasks = await task_store.list(offset=offset, limit=limit)
    total_size = await task_store.count()

    logger.info(
        "Tasks listed successfully",
        extra={"total_tasks": total_size, "returned_tasks": len(tasks), "offset": offset},
    )
    return ListTasksResult(tasks=tasks, totalSize=total_size, offset=offset, limit=limit)


async def handle_tasks_cancel(params: Dict[str, Any], request: Request) -> Task:
    """Handle tasks/cancel."""
    task_id_params = _parse_params(TaskIdParams, params)

    task = await get_task_store(request).cancel(task_id_params.taskId)
    if task is None:
        raise TaskNotFoundError(data={"taskId": task_id_params.taskId})

    return task


METHOD_HANDLERS: Dict[str, MethodHandler] = {
    "message/send": handle_message_send,
    "message/stream": handle_message_stream,
    "tasks/get": handle_tasks_get,
    "tasks/list": handle_tasks_list,
    "tasks/cancel": handle_tasks_cancel,
}


async def a2a_jsonrpc(request: Request) -> Response:
    """Handle A2A JSON-RPC 2.0 requests."""
    request_id: Any = None
    method: Optional[str] = None

    try:
        body = _load_json_body(await request.body())
        request_id = _salvage_request_id(body)
        rpc_request = _validate_envelope(body)
        method = rpc_request.method

        handler = METHOD_HANDLERS.get(method)
        if handler is None:
            raise MethodNotFoundError(data={"method": method})

        logger.info("Processing A2A request", extra={"method": method, "request_id": request_id})
        result = await handler(rpc_request.params or {}, request)

    except A2AError as exc:
        logger.warning(
            "A2A request rejected",
            extra={"method": method, "request_id": request_id, "code": exc.code, "error": exc.message},
        )
        return _error_response(request_id, exc)

    except Exception as exc:
        logger.exception("Error handling A2A JSON-RPC request", extra={"method": method})
        return _error_response(request_id, InternalError(f"Internal error: {exc}"))

    if isinstance(result, Response):
        return result
    return _success_response(request_id, result)


def create_app(
    settings: Optional[Settings] = None,
    responder: Optional[Responder] = None,
    task_store: Optional[InMemoryTaskStore] = None,
) -> FastAPI:
    """
    Create the A2A FastAPI application.

    Args:
        settings: Settings to use instead of the environment-derived ones
        responder: Responder producing agent replies (hello world by default)
        task_store: Task store to share with the app (a fresh one by default)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Hello World A2A Agent",
        description="Minimal A2A protocol server answering every message with a fixed reply",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    executor = AgentExecutor(responder or HelloWorldResponder(settings.reply_text))
    app.state.settings = settings
    app.state.task_store = task_store if task_store is not None else InMemoryTaskStore()
    app.state.executor = executor
    app.state.stream_relay = StreamRelay(executor, app.state.task_store)
    app.state.stream_tasks = set()

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok", "protocol": "A2A", "version": __version__}

    @app.get("/.well-known/agent-card.json")
    async def get_agent_card_well_known(request: Request) -> Any:
        """Agent Card discovery endpoint."""
        agent_card = build_agent_card(settings, base_url=str(request.base_url))
        return serialize_a2a(agent_card)

    # JSON-RPC is accepted on any POST path, "/" and "/a2a/rpc" included.
    app.add_api_route("/", a2a_jsonrpc, methods=["POST"])
    app.add_api_route("/{rpc_path:path}", a2a_jsonrpc, methods=["POST"])

    logger.info("A2A application created successfully")
    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run the A2A server directly."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_level="info",
    )

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from src.config.settings import get_settings
from src.gateway.dispatch import invoke_tool
from src.gateway.protocol import (
    RPCError,
    RPCErrorData,
    RPCResponse,
    ToolCallParams,
    parse_rpc_request,
)
from src.infra.errors import GatewayError, ToolkitError
from src.infra.logging import setup_logging
from src.session.store import get_session_store
from src.tools.builtins import register_builtins
from src.tools.executor import subprocess_executor_factory
from src.tools.registry import ToolRegistry

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize shared state on startup."""
    settings = get_settings()
    setup_logging(json_output=settings.logging.json_output, log_level=settings.logging.level)

    session_store = get_session_store()
    tool_registry = ToolRegistry(enabled_workflows=settings.workflows.enabled_set())
    register_builtins(tool_registry, session_store)

    app.state.tool_registry = tool_registry
    app.state.session_store = session_store
    app.state.executor_factory = subprocess_executor_factory(
        timeout_s=settings.executor.timeout_s,
        shell=settings.executor.shell,
    )
    app.state.defaults_enabled = settings.session.defaults_enabled
    logger.info(
        "gateway_started",
        host=settings.gateway.host,
        port=settings.gateway.port,
        tools=[tool.name for tool in tool_registry.list_tools()],
        session_defaults=settings.session.defaults_enabled,
    )

    yield

    logger.info("gateway_stopped")


app = FastAPI(title="Tool Gateway", version="0.1.0", lifespan=lifespan)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    logger.info("ws_connected")
    try:
        while True:
            raw = await websocket.receive_text()
            await _handle_rpc_message(websocket, raw)
    except WebSocketDisconnect:
        logger.info("ws_disconnected")


async def _handle_rpc_message(websocket: WebSocket, raw: str) -> None:
    """Parse RPC request, route it, send exactly one reply frame."""
    request_id = "unknown"
    try:
        request = parse_rpc_request(raw)
        request_id = request.id

        if request.method == "tools.list":
            await _handle_tools_list(websocket, request_id)
        elif request.method == "tools.call":
            await _handle_tools_call(websocket, request_id, request.params)
        else:
            error = RPCError(
                id=request_id,
                error=RPCErrorData(
                    code="METHOD_NOT_FOUND",
                    message=f"Unknown method: {request.method}",
                ),
            )
            await websocket.send_text(error.model_dump_json())

    except ToolkitError as e:
        logger.warning("request_error", code=e.code, error=str(e), request_id=request_id)
        error = RPCError(
            id=request_id,
            error=RPCErrorData(code=e.code, message=str(e)),
        )
        await websocket.send_text(error.model_dump_json())
    except Exception:
        logger.exception("unhandled_error", request_id=request_id)
        error = RPCError(
            id=request_id,
            error=RPCErrorData(code="INTERNAL_ERROR", message="An internal error occurred"),
        )
        await websocket.send_text(error.model_dump_json())


async def _handle_tools_list(websocket: WebSocket, request_id: str) -> None:
    registry: ToolRegistry = websocket.app.state.tool_registry
    tools = registry.get_tools_schema(defaults_enabled=websocket.app.state.defaults_enabled)
    response = RPCResponse(id=request_id, data={"tools": tools})
    await websocket.send_text(response.model_dump_json())


async def _handle_tools_call(websocket: WebSocket, request_id: str, params: dict) -> None:
    """Handle tools.call: resolve + run the tool, reply with its envelope."""
    try:
        parsed = ToolCallParams.model_validate(params)
    except ValidationError as e:
        raise GatewayError(str(e), code="INVALID_PARAMS") from e

    state = websocket.app.state
    result = await invoke_tool(
        state.tool_registry,
        parsed.name,
        parsed.arguments,
        session_store=state.session_store,
        executor_factory=state.executor_factory,
        defaults_enabled=state.defaults_enabled,
    )
    response = RPCResponse(id=request_id, data=result.to_wire())
    await websocket.send_text(response.model_dump_json())

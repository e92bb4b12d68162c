"""Core dispatch: resolve parameters → build executor → run tool logic.

This is the single place exceptions become response envelopes. The
resolution engine returns diagnostics instead of raising; anything the tool
logic (or the executor factory) raises is caught here, logged once, and
turned into an isError response. Nothing is retried.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

import structlog

from src.infra.errors import GatewayError
from src.session.store import SessionStore
from src.tools.executor import CommandExecutor, ExecutorFactory
from src.tools.registry import ToolRegistry
from src.tools.requirements import Requirement
from src.tools.resolution import Diagnostic, ResolvedParameters, resolve_parameters
from src.tools.response import ToolResponse, error_response
from src.tools.schema import FieldSchema

logger = structlog.get_logger()

LogicFunction = Callable[[ResolvedParameters, CommandExecutor], Awaitable[ToolResponse]]


def _exception_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


async def dispatch_tool(
    arguments: Mapping[str, Any] | None,
    *,
    fields: FieldSchema,
    requirements: Sequence[Requirement],
    session_store: SessionStore,
    logic: LogicFunction,
    executor_factory: ExecutorFactory,
    defaults_enabled: bool = True,
    tool_name: str = "tool",
) -> ToolResponse:
    """Resolve arguments and run logic; always returns a ToolResponse.

    Diagnostics from the engine are returned unchanged. The executor is only
    built once parameters are valid.
    """
    defaults = session_store.get_all() if defaults_enabled else {}
    resolved = resolve_parameters(
        arguments,
        fields,
        requirements,
        defaults,
        defaults_enabled=defaults_enabled,
    )
    if isinstance(resolved, Diagnostic):
        logger.warning(
            "tool_params_rejected",
            tool_name=tool_name,
            kind=resolved.kind.value,
            fields=list(resolved.fields),
        )
        return resolved.to_response()

    if resolved.ignored:
        logger.debug("tool_params_ignored", tool_name=tool_name, ignored=list(resolved.ignored))
    logger.info(
        "tool_params_resolved",
        tool_name=tool_name,
        sources={name: source.value for name, source in resolved.sources.items()},
    )

    try:
        executor = executor_factory()
        response = await logic(resolved, executor)
        if not isinstance(response, ToolResponse):
            raise TypeError(
                f"Tool logic returned {type(response).__name__}, expected ToolResponse"
            )
        logger.info("tool_executed", tool_name=tool_name, is_error=response.is_error)
    except Exception as e:
        logger.exception("tool_logic_failed", tool_name=tool_name)
        return error_response(_exception_message(e))

    return response


async def invoke_tool(
    registry: ToolRegistry,
    name: str,
    arguments: Mapping[str, Any] | None,
    *,
    session_store: SessionStore,
    executor_factory: ExecutorFactory,
    defaults_enabled: bool = True,
) -> ToolResponse:
    """Look a tool up by name and dispatch it.

    Raises GatewayError(code="TOOL_NOT_FOUND") for unknown or disabled tools.
    """
    tool = registry.get(name)
    if tool is None:
        raise GatewayError(f"Unknown tool: {name}", code="TOOL_NOT_FOUND")

    return await dispatch_tool(
        arguments,
        fields=tool.fields,
        requirements=tool.requirements,
        session_store=session_store,
        logic=tool.logic,
        executor_factory=executor_factory,
        defaults_enabled=defaults_enabled,
        tool_name=tool.name,
    )

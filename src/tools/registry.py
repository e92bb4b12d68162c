from __future__ import annotations

from collections.abc import Iterable

import structlog

from src.tools.base import BaseTool, ToolWorkflow

logger = structlog.get_logger()

# Session tools stay reachable whatever workflows are enabled.
ALWAYS_ENABLED: frozenset[ToolWorkflow] = frozenset({ToolWorkflow.session})


class ToolRegistry:
    """Registry for agent tools. Provides lookup and workflow-aware filtering."""

    def __init__(self, enabled_workflows: Iterable[str] = ()) -> None:
        self._tools: dict[str, BaseTool] = {}
        self._enabled = frozenset(w.lower() for w in enabled_workflows)

    def register(self, tool: BaseTool) -> None:
        """Register a tool.

        Raises ValueError if the name is already registered or a requirement
        rule references a field the tool does not declare.
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        tool.check_requirements()
        self._tools[tool.name] = tool
        logger.info("tool_registered", tool_name=tool.name, workflow=tool.workflow.value)

    def get(self, name: str) -> BaseTool | None:
        """Get an enabled tool by name. Returns None if unknown or disabled."""
        tool = self._tools.get(name)
        if tool is None or not self.is_enabled(tool):
            return None
        return tool

    def is_enabled(self, tool: BaseTool) -> bool:
        """Empty enabled set means every workflow is on."""
        if not self._enabled or tool.workflow in ALWAYS_ENABLED:
            return True
        return tool.workflow.value in self._enabled

    def list_tools(self) -> list[BaseTool]:
        """Return enabled tools in registration order."""
        return [tool for tool in self._tools.values() if self.is_enabled(tool)]

    def get_tools_schema(self, *, defaults_enabled: bool = True) -> list[dict]:
        """Return enabled tools with their public input schemas.

        Output format:
        [{"name": ..., "description": ..., "workflow": ..., "inputSchema": ...}]
        """
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "workflow": tool.workflow.value,
                "inputSchema": tool.public_schema(defaults_enabled=defaults_enabled),
            }
            for tool in self.list_tools()
        ]

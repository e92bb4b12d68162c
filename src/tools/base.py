from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from src.tools.requirements import Requirement, referenced_fields, required_fields

if TYPE_CHECKING:
    from src.tools.executor import CommandExecutor
    from src.tools.resolution import ResolvedParameters
    from src.tools.response import ToolResponse
    from src.tools.schema import FieldSchema


class ToolWorkflow(StrEnum):
    """Workflow a tool belongs to. Workflows can be switched off as a group."""

    session = "session-management"
    simulator = "simulator"
    swift_package = "swift-package"


class BaseTool(ABC):
    """Abstract base class for agent-facing tools.

    A tool is declarative up to the point its logic runs: fields and
    requirements describe the parameters, and the dispatch wrapper resolves
    them (session defaults included) before logic() is awaited.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name used by callers."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        ...

    @property
    @abstractmethod
    def workflow(self) -> ToolWorkflow:
        ...

    @property
    @abstractmethod
    def fields(self) -> FieldSchema:
        """Internal schema: every parameter the logic may receive."""
        ...

    @property
    def requirements(self) -> tuple[Requirement, ...]:
        """Presence rules over the merged parameters. None by default."""
        return ()

    def check_requirements(self) -> None:
        """Raise ValueError if a rule names a field the schema does not declare."""
        unknown = referenced_fields(self.requirements) - set(self.fields)
        if unknown:
            raise ValueError(
                f"Tool '{self.name}' has requirement rules over undeclared fields: "
                f"{sorted(unknown)}"
            )

    def public_schema(self, *, defaults_enabled: bool = True) -> dict[str, Any]:
        """JSON Schema of what a caller must pass explicitly."""
        return self.fields.json_schema(
            required=required_fields(self.requirements),
            defaults_enabled=defaults_enabled,
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return self.public_schema()

    @abstractmethod
    async def logic(
        self, params: ResolvedParameters, executor: CommandExecutor
    ) -> ToolResponse:
        """Run the tool with resolved parameters and an injected executor."""
        ...

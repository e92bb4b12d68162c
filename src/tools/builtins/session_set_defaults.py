from __future__ import annotations

import json
from typing import TYPE_CHECKING

from src.tools.base import BaseTool, ToolWorkflow
from src.tools.builtins.fields import EXCLUSIVE_DEFAULTS, SESSION_FIELDS, explicit_only
from src.tools.requirements import ExclusivePair, Requirement
from src.tools.response import text_response
from src.tools.schema import FieldSchema

if TYPE_CHECKING:
    from src.session.store import SessionStore
    from src.tools.executor import CommandExecutor
    from src.tools.resolution import ResolvedParameters
    from src.tools.response import ToolResponse

_FIELDS = FieldSchema({name: explicit_only(spec) for name, spec in SESSION_FIELDS.items()})


class SessionSetDefaultsTool(BaseTool):
    """Stores default parameter values for later tool calls."""

    def __init__(self, session_store: SessionStore) -> None:
        self._store = session_store

    @property
    def name(self) -> str:
        return "session_set_defaults"

    @property
    def description(self) -> str:
        return (
            "Set session defaults (projectPath, scheme, simulatorId, ...) so later "
            "tool calls can omit them. Setting projectPath clears workspacePath and "
            "setting simulatorId clears simulatorName, and vice versa."
        )

    @property
    def workflow(self) -> ToolWorkflow:
        return ToolWorkflow.session

    @property
    def fields(self) -> FieldSchema:
        return _FIELDS

    @property
    def requirements(self) -> tuple[Requirement, ...]:
        return tuple(ExclusivePair(a, b) for a, b in EXCLUSIVE_DEFAULTS)

    async def logic(
        self, params: ResolvedParameters, executor: CommandExecutor
    ) -> ToolResponse:
        values = params.as_dict()
        if not values:
            return text_response(
                "No defaults provided. Pass at least one of: "
                + ", ".join(_FIELDS.names),
                is_error=True,
            )

        counterparts = [
            other
            for first, second in EXCLUSIVE_DEFAULTS
            for kept, other in ((first, second), (second, first))
            if kept in values
        ]
        dropped = self._store.set_defaults(values, drop=counterparts)

        lines = [f"Session defaults updated: {', '.join(sorted(values))}"]
        if dropped:
            lines.append(f"Cleared conflicting defaults: {', '.join(dropped)}")
        lines.append(json.dumps(self._store.get_all(), indent=2, sort_keys=True))
        return text_response("\n".join(lines))

from __future__ import annotations

from typing import TYPE_CHECKING

from src.tools.base import BaseTool, ToolWorkflow
from src.tools.requirements import OneOf, Requirement
from src.tools.response import text_response
from src.tools.schema import FieldSchema, FieldSpec, NonEmptyStr

if TYPE_CHECKING:
    from src.session.store import SessionStore
    from src.tools.executor import CommandExecutor
    from src.tools.resolution import ResolvedParameters
    from src.tools.response import ToolResponse

_FIELDS = FieldSchema(
    {
        "keys": FieldSpec(list[NonEmptyStr], "Names of the defaults to remove."),
        "all": FieldSpec(bool, "Remove every stored default."),
    }
)


class SessionClearDefaultsTool(BaseTool):
    """Removes some or all session defaults."""

    def __init__(self, session_store: SessionStore) -> None:
        self._store = session_store

    @property
    def name(self) -> str:
        return "session_clear_defaults"

    @property
    def description(self) -> str:
        return "Clear session defaults: pass keys to remove, or all=true to wipe them."

    @property
    def workflow(self) -> ToolWorkflow:
        return ToolWorkflow.session

    @property
    def fields(self) -> FieldSchema:
        return _FIELDS

    @property
    def requirements(self) -> tuple[Requirement, ...]:
        return (OneOf(("keys", "all"), "Provide keys to clear, or all=true"),)

    async def logic(
        self, params: ResolvedParameters, executor: CommandExecutor
    ) -> ToolResponse:
        if "all" in params:
            if not params["all"]:
                return text_response(
                    "Nothing cleared: pass all=true or a list of keys.", is_error=True
                )
            self._store.clear()
            return text_response("All session defaults cleared.")

        keys: list[str] = params["keys"]
        self._store.clear(keys)
        remaining = sorted(self._store.get_all())
        return text_response(
            f"Cleared session defaults: {', '.join(keys)}\n"
            f"Remaining: {', '.join(remaining) if remaining else '(none)'}"
        )

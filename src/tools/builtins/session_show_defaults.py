from __future__ import annotations

import json
from typing import TYPE_CHECKING

from src.tools.base import BaseTool, ToolWorkflow
from src.tools.response import text_response
from src.tools.schema import FieldSchema

if TYPE_CHECKING:
    from src.session.store import SessionStore
    from src.tools.executor import CommandExecutor
    from src.tools.resolution import ResolvedParameters
    from src.tools.response import ToolResponse


class SessionShowDefaultsTool(BaseTool):
    """Returns the stored session defaults as JSON."""

    def __init__(self, session_store: SessionStore) -> None:
        self._store = session_store

    @property
    def name(self) -> str:
        return "session_show_defaults"

    @property
    def description(self) -> str:
        return "Show the current session defaults."

    @property
    def workflow(self) -> ToolWorkflow:
        return ToolWorkflow.session

    @property
    def fields(self) -> FieldSchema:
        return FieldSchema({})

    async def logic(
        self, params: ResolvedParameters, executor: CommandExecutor
    ) -> ToolResponse:
        return text_response(json.dumps(self._store.get_all(), indent=2, sort_keys=True))

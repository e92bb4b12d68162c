"""Shared pytest fixtures for tool gateway tests.

FakeExecutor stands in for the command executor: it records every command
and answers with a canned CommandResult (or raises, when told to).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import pytest

from src.session.store import SessionStore, get_session_store
from src.tools.executor import CommandResult, ExecOptions


@dataclass
class RecordedCall:
    command: list[str]
    label: str | None
    use_shell: bool
    options: ExecOptions | None
    detached: bool


@dataclass
class FakeExecutor:
    results: list[CommandResult] = field(
        default_factory=lambda: [CommandResult(success=True, output="")]
    )
    raises: Exception | None = None
    calls: list[RecordedCall] = field(default_factory=list)

    async def execute(
        self,
        command: Sequence[str],
        label: str | None = None,
        use_shell: bool = False,
        options: ExecOptions | None = None,
        detached: bool = False,
    ) -> CommandResult:
        self.calls.append(RecordedCall(list(command), label, use_shell, options, detached))
        if self.raises is not None:
            raise self.raises
        # Last result repeats once the queue is drained.
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]

    @property
    def commands(self) -> list[list[str]]:
        return [call.command for call in self.calls]


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def executor_factory(fake_executor: FakeExecutor) -> Callable[[], FakeExecutor]:
    return lambda: fake_executor


@pytest.fixture
def global_session_store():
    """The process-global store, emptied before and after the test."""
    store = get_session_store()
    store.clear()
    yield store
    store.clear()

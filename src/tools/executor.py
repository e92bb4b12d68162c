"""Command executor capability handed to tool logic.

Tool logic never spawns processes itself: the dispatch wrapper gives it a
CommandExecutor built by an ExecutorFactory. Tests inject a fake one.
"""

from __future__ import annotations

import asyncio
import os
import shlex
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class CommandResult:
    success: bool
    output: str
    error: str | None = None
    exit_code: int | None = None


@dataclass(frozen=True)
class ExecOptions:
    env: Mapping[str, str] | None = None
    cwd: str | None = None


class CommandExecutor(Protocol):
    async def execute(
        self,
        command: Sequence[str],
        label: str | None = None,
        use_shell: bool = False,
        options: ExecOptions | None = None,
        detached: bool = False,
    ) -> CommandResult: ...


ExecutorFactory = Callable[[], CommandExecutor]


class SubprocessExecutor:
    """Runs commands as asyncio subprocesses.

    detached=True starts the process and returns as soon as it is spawned;
    output is not collected. Otherwise the call waits up to timeout_s and
    kills the process on expiry.
    """

    def __init__(self, *, timeout_s: float = 600.0, shell: str = "/bin/sh") -> None:
        self._timeout_s = timeout_s
        self._shell = shell

    async def execute(
        self,
        command: Sequence[str],
        label: str | None = None,
        use_shell: bool = False,
        options: ExecOptions | None = None,
        detached: bool = False,
    ) -> CommandResult:
        argv = [self._shell, "-c", shlex.join(command)] if use_shell else list(command)
        env = None
        cwd = None
        if options is not None:
            if options.env:
                env = {**os.environ, **options.env}
            cwd = options.cwd

        logger.info(
            "command_started",
            label=label or argv[0],
            argv=argv,
            env_keys=sorted(options.env) if options and options.env else [],
            detached=detached,
        )
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.DEVNULL if detached else asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL if detached else asyncio.subprocess.PIPE,
                env=env,
                cwd=cwd,
                start_new_session=detached,
            )
        except OSError as e:
            logger.warning("command_spawn_failed", label=label, error=str(e))
            return CommandResult(success=False, output="", error=str(e))

        if detached:
            return CommandResult(success=True, output=f"Started process {process.pid}")

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout_s
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            logger.warning("command_timed_out", label=label, timeout_s=self._timeout_s)
            return CommandResult(
                success=False,
                output="",
                error=f"Command timed out after {self._timeout_s:g}s",
                exit_code=process.returncode,
            )

        output = stdout.decode("utf-8", errors="replace")
        error_text = stderr.decode("utf-8", errors="replace")
        success = process.returncode == 0
        logger.info("command_finished", label=label, exit_code=process.returncode)
        return CommandResult(
            success=success,
            output=output,
            error=None if success else (error_text or f"exit code {process.returncode}"),
            exit_code=process.returncode,
        )


def subprocess_executor_factory(
    *, timeout_s: float = 600.0, shell: str = "/bin/sh"
) -> ExecutorFactory:
    """Factory producing a fresh SubprocessExecutor per call."""

    def _factory() -> CommandExecutor:
        return SubprocessExecutor(timeout_s=timeout_s, shell=shell)

    return _factory

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import structlog

from src.tools.base import BaseTool, ToolWorkflow
from src.tools.builtins.fields import BUNDLE_ID, ENV, SIMULATOR_ID, SIMULATOR_NAME
from src.tools.executor import ExecOptions
from src.tools.requirements import AllOf, OneOf, Requirement
from src.tools.response import text_response
from src.tools.schema import FieldSchema, FieldSpec

if TYPE_CHECKING:
    from src.tools.executor import CommandExecutor
    from src.tools.resolution import ResolvedParameters
    from src.tools.response import ToolResponse

logger = structlog.get_logger()

# simctl forwards variables with this prefix to the launched app, prefix stripped.
_CHILD_ENV_PREFIX = "SIMCTL_CHILD_"

_FIELDS = FieldSchema(
    {
        "simulatorId": SIMULATOR_ID,
        "simulatorName": SIMULATOR_NAME,
        "bundleId": BUNDLE_ID,
        "args": FieldSpec(list[str], "Extra launch arguments passed to the app."),
        "env": ENV,
    }
)


async def find_simulator_id(executor: CommandExecutor, name: str) -> str | None:
    """UUID of the first available simulator with the given name, or None."""
    result = await executor.execute(
        ["xcrun", "simctl", "list", "devices", "available", "--json"], "List Simulators"
    )
    if not result.success:
        return None
    try:
        runtimes = json.loads(result.output).get("devices", {})
    except (json.JSONDecodeError, AttributeError):
        logger.warning("simulator_list_unparseable", output_len=len(result.output))
        return None
    for devices in runtimes.values():
        for device in devices:
            if device.get("name") == name:
                return device.get("udid")
    return None


class LaunchAppSimTool(BaseTool):
    """Launches an installed app on a simulator."""

    @property
    def name(self) -> str:
        return "launch_app_sim"

    @property
    def description(self) -> str:
        return "Launch an app in an iOS simulator by simulatorId or simulatorName."

    @property
    def workflow(self) -> ToolWorkflow:
        return ToolWorkflow.simulator

    @property
    def fields(self) -> FieldSchema:
        return _FIELDS

    @property
    def requirements(self) -> tuple[Requirement, ...]:
        return (
            AllOf(("bundleId",), "bundleId is required"),
            OneOf(("simulatorId", "simulatorName"), "Provide simulatorId or simulatorName"),
        )

    async def logic(
        self, params: ResolvedParameters, executor: CommandExecutor
    ) -> ToolResponse:
        simulator_id = params.get("simulatorId")
        if simulator_id is None:
            simulator_name = params["simulatorName"]
            simulator_id = await find_simulator_id(executor, simulator_name)
            if simulator_id is None:
                return text_response(
                    f"Simulator named '{simulator_name}' not found.", is_error=True
                )

        bundle_id = params["bundleId"]
        command = ["xcrun", "simctl", "launch", simulator_id, bundle_id, *params.get("args", [])]
        options = None
        if params.get("env"):
            options = ExecOptions(
                env={f"{_CHILD_ENV_PREFIX}{k}": v for k, v in params["env"].items()}
            )

        result = await executor.execute(command, "Launch App", False, options)
        if not result.success:
            return text_response(
                f"Launch app in simulator operation failed: {result.error}", is_error=True
            )
        return text_response(f"App {bundle_id} launched in simulator {simulator_id}.")

from __future__ import annotations

from typing import TYPE_CHECKING

from src.tools.base import BaseTool, ToolWorkflow
from src.tools.builtins.fields import SIMULATOR_ID
from src.tools.requirements import AllOf, Requirement
from src.tools.response import NextStep, text_response
from src.tools.schema import FieldSchema

if TYPE_CHECKING:
    from src.tools.executor import CommandExecutor
    from src.tools.resolution import ResolvedParameters
    from src.tools.response import ToolResponse

_FIELDS = FieldSchema({"simulatorId": SIMULATOR_ID})


class BootSimTool(BaseTool):
    """Boots an iOS simulator by UUID."""

    @property
    def name(self) -> str:
        return "boot_sim"

    @property
    def description(self) -> str:
        return "Boot an iOS simulator."

    @property
    def workflow(self) -> ToolWorkflow:
        return ToolWorkflow.simulator

    @property
    def fields(self) -> FieldSchema:
        return _FIELDS

    @property
    def requirements(self) -> tuple[Requirement, ...]:
        return (AllOf(("simulatorId",), "simulatorId is required"),)

    async def logic(
        self, params: ResolvedParameters, executor: CommandExecutor
    ) -> ToolResponse:
        simulator_id = params["simulatorId"]
        result = await executor.execute(
            ["xcrun", "simctl", "boot", simulator_id], "Boot Simulator"
        )
        if not result.success:
            return text_response(
                f"Boot simulator operation failed: {result.error}", is_error=True
            )

        return text_response(
            f"Simulator {simulator_id} booted successfully.",
            next_steps=[
                NextStep(
                    tool="launch_app_sim",
                    label="Launch an app on the booted simulator",
                    params={"simulatorId": simulator_id, "bundleId": "BUNDLE_ID"},
                    priority=1,
                ),
            ],
        )

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from src.tools.base import BaseTool, ToolWorkflow
from src.tools.builtins.fields import (
    CONFIGURATION,
    PROJECT_PATH,
    SCHEME,
    SIMULATOR_ID,
    SIMULATOR_NAME,
    USE_LATEST_OS,
    WORKSPACE_PATH,
)
from src.tools.requirements import AllOf, OneOf, Requirement
from src.tools.response import NextStep, text_response
from src.tools.schema import FieldSchema, FieldSpec

if TYPE_CHECKING:
    from src.tools.executor import CommandExecutor
    from src.tools.resolution import ResolvedParameters
    from src.tools.response import ToolResponse

logger = structlog.get_logger()

_FIELDS = FieldSchema(
    {
        "projectPath": PROJECT_PATH,
        "workspacePath": WORKSPACE_PATH,
        "scheme": SCHEME,
        "configuration": CONFIGURATION,
        "simulatorId": SIMULATOR_ID,
        "simulatorName": SIMULATOR_NAME,
        "useLatestOS": USE_LATEST_OS,
        "extraArgs": FieldSpec(list[str], "Additional xcodebuild arguments."),
    }
)


def destination_for(params: ResolvedParameters) -> str:
    if "simulatorId" in params:
        return f"platform=iOS Simulator,id={params['simulatorId']}"
    destination = f"platform=iOS Simulator,name={params['simulatorName']}"
    if params.get("useLatestOS", True):
        destination += ",OS=latest"
    return destination


class BuildSimTool(BaseTool):
    """Builds an app for an iOS simulator with xcodebuild."""

    @property
    def name(self) -> str:
        return "build_sim"

    @property
    def description(self) -> str:
        return (
            "Build an app for an iOS simulator from a project or workspace. "
            "scheme, project/workspace and simulator may come from session defaults."
        )

    @property
    def workflow(self) -> ToolWorkflow:
        return ToolWorkflow.simulator

    @property
    def fields(self) -> FieldSchema:
        return _FIELDS

    @property
    def requirements(self) -> tuple[Requirement, ...]:
        return (
            AllOf(("scheme",), "scheme is required"),
            OneOf(("projectPath", "workspacePath"), "Provide a project or workspace"),
            OneOf(("simulatorId", "simulatorName"), "Provide simulatorId or simulatorName"),
        )

    async def logic(
        self, params: ResolvedParameters, executor: CommandExecutor
    ) -> ToolResponse:
        if "simulatorId" in params and "useLatestOS" in params:
            logger.warning("use_latest_os_ignored", reason="simulatorId pins the OS")

        command = ["xcodebuild"]
        if "workspacePath" in params:
            command += ["-workspace", params["workspacePath"]]
        else:
            command += ["-project", params["projectPath"]]
        command += [
            "-scheme", params["scheme"],
            "-configuration", params.get("configuration", "Debug"),
            "-skipMacroValidation",
            "-destination", destination_for(params),
            *params.get("extraArgs", []),
            "build",
        ]

        result = await executor.execute(command, "iOS Simulator Build")
        if not result.success:
            return text_response(
                f"iOS Simulator Build build failed for scheme {params['scheme']}.\n"
                f"{result.error or result.output}",
                is_error=True,
            )

        return text_response(
            f"iOS Simulator Build build succeeded for scheme {params['scheme']}.",
            next_steps=[
                NextStep(
                    tool="launch_app_sim",
                    label="Launch the built app",
                    params={"bundleId": "BUNDLE_ID"},
                    priority=1,
                ),
            ],
        )

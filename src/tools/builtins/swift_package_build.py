from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from src.tools.base import BaseTool, ToolWorkflow
from src.tools.requirements import AllOf, Requirement
from src.tools.response import text_response
from src.tools.schema import FieldSchema, FieldSpec, NonEmptyStr

if TYPE_CHECKING:
    from src.tools.executor import CommandExecutor
    from src.tools.resolution import ResolvedParameters
    from src.tools.response import ToolResponse

_FIELDS = FieldSchema(
    {
        "packagePath": FieldSpec(NonEmptyStr, "Path to the Swift package root."),
        "targetName": FieldSpec(NonEmptyStr, "Build only this target."),
        "configuration": FieldSpec(
            Literal["debug", "release"], "Swift build configuration. Defaults to debug."
        ),
        "architectures": FieldSpec(list[NonEmptyStr], "Architectures to build for."),
        "parseAsLibrary": FieldSpec(bool, "Pass -parse-as-library to the compiler."),
    }
)


class SwiftPackageBuildTool(BaseTool):
    """Builds a Swift package with `swift build`."""

    @property
    def name(self) -> str:
        return "swift_package_build"

    @property
    def description(self) -> str:
        return "Build a Swift package using swift build."

    @property
    def workflow(self) -> ToolWorkflow:
        return ToolWorkflow.swift_package

    @property
    def fields(self) -> FieldSchema:
        return _FIELDS

    @property
    def requirements(self) -> tuple[Requirement, ...]:
        return (AllOf(("packagePath",)),)

    async def logic(
        self, params: ResolvedParameters, executor: CommandExecutor
    ) -> ToolResponse:
        command = ["swift", "build", "--package-path", params["packagePath"]]
        if params.get("configuration") == "release":
            command += ["-c", "release"]
        if "targetName" in params:
            command += ["--target", params["targetName"]]
        for arch in params.get("architectures", []):
            command += ["--arch", arch]
        if params.get("parseAsLibrary"):
            command += ["-Xswiftc", "-parse-as-library"]

        result = await executor.execute(command, "Swift Package Build")
        if not result.success:
            return text_response(
                f"Swift package build failed.\n{result.error or result.output}",
                is_error=True,
            )
        return text_response(f"Swift package build succeeded.\n{result.output}".rstrip())

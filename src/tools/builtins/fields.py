"""Field declarations shared by several built-in tools.

Session defaults are one flat namespace, so a name here means the same thing
in every tool that declares it.
"""

from __future__ import annotations

from dataclasses import replace

from src.tools.schema import EnvMapping, FieldSpec, NonEmptyStr, Uuid

PROJECT_PATH = FieldSpec(
    NonEmptyStr,
    "Path to the .xcodeproj file. Provide EITHER this OR workspacePath, not both.",
    session_default=True,
)
WORKSPACE_PATH = FieldSpec(
    NonEmptyStr,
    "Path to the .xcworkspace file. Provide EITHER this OR projectPath, not both.",
    session_default=True,
)
SCHEME = FieldSpec(NonEmptyStr, "The scheme to build.", session_default=True)
CONFIGURATION = FieldSpec(
    NonEmptyStr, "Build configuration (Debug, Release, ...).", session_default=True
)
SIMULATOR_ID = FieldSpec(
    Uuid,
    "UUID of the simulator. Provide EITHER this OR simulatorName, not both.",
    session_default=True,
)
SIMULATOR_NAME = FieldSpec(
    NonEmptyStr,
    "Name of the simulator, e.g. 'iPhone 16'. Provide EITHER this OR simulatorId, not both.",
    session_default=True,
)
USE_LATEST_OS = FieldSpec(
    bool,
    "Use the latest OS for a named simulator.",
    session_default=True,
)
BUNDLE_ID = FieldSpec(
    NonEmptyStr, "Bundle identifier, e.g. 'com.example.App'.", session_default=True
)
DEVICE_ID = FieldSpec(NonEmptyStr, "UDID of a physical device.", session_default=True)
ENV = FieldSpec(
    EnvMapping,
    "Environment variables. Merged key by key over the session default.",
    session_default=True,
    merge="deep",
)

# Every field session_set_defaults accepts.
SESSION_FIELDS: dict[str, FieldSpec] = {
    "projectPath": PROJECT_PATH,
    "workspacePath": WORKSPACE_PATH,
    "scheme": SCHEME,
    "configuration": CONFIGURATION,
    "simulatorId": SIMULATOR_ID,
    "simulatorName": SIMULATOR_NAME,
    "useLatestOS": USE_LATEST_OS,
    "deviceId": DEVICE_ID,
    "bundleId": BUNDLE_ID,
    "env": ENV,
}

# Pairs that cannot both be stored; setting one drops the other.
EXCLUSIVE_DEFAULTS: tuple[tuple[str, str], ...] = (
    ("projectPath", "workspacePath"),
    ("simulatorId", "simulatorName"),
)


def explicit_only(spec: FieldSpec) -> FieldSpec:
    """Same validator, but never filled from session defaults."""
    return replace(spec, session_default=False, merge="replace")

from __future__ import annotations

from typing import TYPE_CHECKING

from src.tools.builtins.boot_sim import BootSimTool
from src.tools.builtins.build_sim import BuildSimTool
from src.tools.builtins.launch_app_sim import LaunchAppSimTool
from src.tools.builtins.session_clear_defaults import SessionClearDefaultsTool
from src.tools.builtins.session_set_defaults import SessionSetDefaultsTool
from src.tools.builtins.session_show_defaults import SessionShowDefaultsTool
from src.tools.builtins.swift_package_build import SwiftPackageBuildTool
from src.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from src.session.store import SessionStore


def register_builtins(registry: ToolRegistry, session_store: SessionStore) -> None:
    """Register all built-in tools with the registry.

    Session tools share the store the dispatch wrapper reads from.
    """
    registry.register(SessionSetDefaultsTool(session_store))
    registry.register(SessionClearDefaultsTool(session_store))
    registry.register(SessionShowDefaultsTool(session_store))

    registry.register(BootSimTool())
    registry.register(LaunchAppSimTool())
    registry.register(BuildSimTool())

    registry.register(SwiftPackageBuildTool())

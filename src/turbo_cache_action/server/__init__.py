"""Cache server lifecycle: launch and cleanup phases."""

from turbo_cache_action.server.cleanup import ServerCleanup
from turbo_cache_action.server.launcher import ServerLauncher
from turbo_cache_action.server.models import (
    CleanupResult,
    CleanupStage,
    LaunchInputs,
    LaunchResult,
    LaunchStage,
)

__all__ = [
    "CleanupResult",
    "CleanupStage",
    "LaunchInputs",
    "LaunchResult",
    "LaunchStage",
    "ServerCleanup",
    "ServerLauncher",
]

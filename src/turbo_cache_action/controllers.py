"""Controllers for the launch and cleanup CLI commands."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from turbo_cache_action.actions import GithubActionsRuntime
from turbo_cache_action.config import Settings
from turbo_cache_action.server import (
    CleanupResult,
    CleanupStage,
    LaunchResult,
    LaunchStage,
    ServerCleanup,
    ServerLauncher,
)
from turbo_cache_action.server.cleanup import FAILURE_PREFIX as CLEANUP_FAILURE_PREFIX
from turbo_cache_action.server.launcher import FAILURE_PREFIX as LAUNCH_FAILURE_PREFIX


@dataclass(slots=True)
class LaunchCommand:
    """CLI input for the pre-job launch phase."""

    log_dir: Path | None = None


@dataclass(slots=True)
class CleanupCommand:
    """CLI input for the post-job cleanup phase."""

    log_dir: Path | None = None


class ServerCliController:
    """Wires settings and the Actions runtime into the two phases."""

    def __init__(
        self,
        runtime_factory: Callable[[], GithubActionsRuntime] = GithubActionsRuntime,
    ) -> None:
        self._runtime_factory = runtime_factory

    def launch(self, command: LaunchCommand) -> LaunchResult:
        runtime = self._runtime_factory()
        try:
            settings = _load_settings(command.log_dir)
        except ValueError as error:
            message = f"{LAUNCH_FAILURE_PREFIX}{error}"
            runtime.set_failed(message)
            return LaunchResult(success=False, stage=LaunchStage.FAILED, message=message)

        launcher = ServerLauncher(
            settings=settings,
            inputs=runtime,
            publisher=runtime,
            state=runtime,
            reporter=runtime,
        )
        return launcher.launch()

    def cleanup(self, command: CleanupCommand) -> CleanupResult:
        runtime = self._runtime_factory()
        try:
            settings = _load_settings(command.log_dir)
        except ValueError as error:
            message = f"{CLEANUP_FAILURE_PREFIX}{error}"
            runtime.set_failed(message)
            return CleanupResult(success=False, stage=CleanupStage.FAILED, message=message)

        cleanup = ServerCleanup(
            state=runtime,
            reporter=runtime,
            log_files=settings.log_files,
        )
        return cleanup.cleanup()


def _load_settings(log_dir: Path | None) -> Settings:
    settings = Settings.from_env(log_dir=log_dir)
    settings.validate()
    return settings

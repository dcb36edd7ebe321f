"""Launch phase: bring the cache server up and publish its connection info."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path

from turbo_cache_action.actions.base import (
    EnvironmentPublisher,
    InputSource,
    Reporter,
    StateStore,
)
from turbo_cache_action.config import Settings
from turbo_cache_action.errors import ReadinessTimeoutError
from turbo_cache_action.server.allocator import generate_token, resolve_port
from turbo_cache_action.server.environment import build_server_environment
from turbo_cache_action.server.handoff import save_handoff
from turbo_cache_action.server.models import LaunchInputs, LaunchResult, LaunchStage
from turbo_cache_action.server.process import SpawnedServer, spawn_detached, wait_for_port

logger = logging.getLogger(__name__)

FAILURE_PREFIX = "Failed to start Turborepo Remote Cache Server: "

SpawnFn = Callable[..., SpawnedServer]
WaitFn = Callable[..., bool]


class ServerLauncher:
    """Allocate, spawn, wait for readiness, report and hand off to the post step."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        settings: Settings,
        inputs: InputSource,
        publisher: EnvironmentPublisher,
        state: StateStore,
        reporter: Reporter,
        spawn: SpawnFn = spawn_detached,
        wait: WaitFn = wait_for_port,
        port_resolver: Callable[[str], int] = resolve_port,
        token_factory: Callable[[], str] = generate_token,
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        self._settings = settings
        self._inputs = inputs
        self._publisher = publisher
        self._state = state
        self._reporter = reporter
        self._spawn = spawn
        self._wait = wait
        self._port_resolver = port_resolver
        self._token_factory = token_factory
        self._base_env = base_env
        self.stage = LaunchStage.IDLE

    def launch(self) -> LaunchResult:
        """Run the phase; failures are reported, never raised."""

        try:
            return self._launch()
        except Exception as error:  # noqa: BLE001
            failed_at = self.stage
            self.stage = LaunchStage.FAILED
            if isinstance(error, ReadinessTimeoutError):
                self.stage = LaunchStage.TIMED_OUT
            logger.debug("Launch failed during %s", failed_at.value, exc_info=True)
            message = f"{FAILURE_PREFIX}{error}"
            self._reporter.set_failed(message)
            return LaunchResult(success=False, stage=self.stage, message=message)

    def _launch(self) -> LaunchResult:
        inputs = LaunchInputs.from_source(self._inputs)
        readiness = self._settings.readiness

        self.stage = LaunchStage.ALLOCATING_RESOURCES
        Path(self._settings.log_dir).mkdir(parents=True, exist_ok=True)
        port = self._port_resolver(inputs.port)
        token = self._token_factory()
        api_url = f"{inputs.host}:{port}"

        self._publisher.set_secret(token)
        self._publisher.export_variable("TURBO_API", api_url)
        self._publisher.export_variable("TURBO_TOKEN", token)
        self._publisher.export_variable("TURBO_TEAM", inputs.team_id)

        server_env = build_server_environment(
            port=port,
            token=token,
            storage_provider=inputs.storage_provider,
            storage_path=inputs.storage_path,
        )
        base_env = os.environ if self._base_env is None else self._base_env
        env = server_env.merged_over(base_env)

        self.stage = LaunchStage.SPAWNING
        server = self._spawn(
            self._settings.server_command,
            env=env,
            stdout_path=self._settings.log_file,
            stderr_path=self._settings.error_log_file,
        )

        self.stage = LaunchStage.AWAITING_READINESS
        ready = self._wait(
            readiness.host,
            port,
            timeout_seconds=readiness.timeout_seconds,
            poll_interval_seconds=readiness.poll_interval_seconds,
        )
        if not ready:
            raise ReadinessTimeoutError(port, readiness.timeout_seconds)

        self.stage = LaunchStage.READY
        self._report_started(inputs=inputs, server=server, port=port, api_url=api_url)
        save_handoff(self._state, pid=server.pid, port=port)
        return LaunchResult(
            success=True,
            stage=self.stage,
            pid=server.pid,
            port=port,
            api_url=api_url,
        )

    def _report_started(
        self,
        *,
        inputs: LaunchInputs,
        server: SpawnedServer,
        port: int,
        api_url: str,
    ) -> None:
        info = self._reporter.info
        info("✅ Turborepo Remote Cache Server started")
        info(f"   PID: {server.pid}")
        info(f"   Port: {port}")
        info(f"   API: {api_url}")
        info(f"   Team: {inputs.team_id}")
        if inputs.storage_provider:
            info(f"   Storage Provider: {inputs.storage_provider}")
        if inputs.storage_path:
            info(f"   Storage Path: {inputs.storage_path}")

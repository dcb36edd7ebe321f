from __future__ import annotations

import re
from pathlib import Path

import allure
import pytest

from turbo_cache_action.actions import MemoryRuntime
from turbo_cache_action.config import Settings
from turbo_cache_action.errors import ResourceUnavailableError, SpawnError
from turbo_cache_action.server import LaunchStage, ServerLauncher
from turbo_cache_action.server.allocator import generate_token
from turbo_cache_action.server.process import SpawnedServer

pytestmark = [
    allure.epic("Server Launch"),
    allure.feature("Launch Phase"),
]

TOKEN = "ab" * 32


class _FakeSpawner:
    def __init__(self, pid: int | None = 12345, error: Exception | None = None) -> None:
        self.pid = pid
        self.error = error
        self.calls: list[dict] = []

    def __call__(self, command, *, env, stdout_path, stderr_path) -> SpawnedServer:
        self.calls.append(
            {
                "command": tuple(command),
                "env": dict(env),
                "stdout_path": stdout_path,
                "stderr_path": stderr_path,
            },
        )
        if self.error is not None:
            raise self.error
        return SpawnedServer(pid=self.pid, command=tuple(command))


class _FakeWait:
    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.calls: list[tuple] = []

    def __call__(self, host, port, *, timeout_seconds, poll_interval_seconds) -> bool:
        self.calls.append((host, port, timeout_seconds, poll_interval_seconds))
        return self.result


def _launcher(  # noqa: PLR0913
    runtime: MemoryRuntime,
    settings: Settings,
    *,
    spawner: _FakeSpawner | None = None,
    wait: _FakeWait | None = None,
    port: int = 3000,
    port_resolver=None,
    base_env: dict[str, str] | None = None,
) -> ServerLauncher:
    return ServerLauncher(
        settings=settings,
        inputs=runtime,
        publisher=runtime,
        state=runtime,
        reporter=runtime,
        spawn=spawner or _FakeSpawner(),
        wait=wait or _FakeWait(),
        port_resolver=port_resolver or (lambda _requested: port),
        token_factory=lambda: TOKEN,
        base_env={"PATH": "/usr/bin"} if base_env is None else base_env,
    )


def test_launch_creates_log_directory(runtime: MemoryRuntime, settings: Settings) -> None:
    assert not settings.log_dir.exists()

    _launcher(runtime, settings).launch()

    assert settings.log_dir.is_dir()


def test_launch_is_idempotent_about_existing_log_directory(
    runtime: MemoryRuntime,
    settings: Settings,
) -> None:
    settings.log_dir.mkdir(parents=True)

    result = _launcher(runtime, settings).launch()

    assert result.success


def test_launch_exports_defaults(runtime: MemoryRuntime, settings: Settings) -> None:
    result = _launcher(runtime, settings).launch()

    assert result.success
    assert result.stage is LaunchStage.READY
    assert runtime.exported == {
        "TURBO_API": "http://127.0.0.1:3000",
        "TURBO_TOKEN": TOKEN,
        "TURBO_TEAM": "ci",
    }
    assert runtime.secrets == [TOKEN]
    assert not runtime.failed


def test_launch_api_url_is_host_and_port_verbatim(
    runtime: MemoryRuntime,
    settings: Settings,
) -> None:
    runtime.inputs["host"] = "https://cache.internal"

    result = _launcher(runtime, settings, port=5123).launch()

    assert result.api_url == "https://cache.internal:5123"
    assert runtime.exported["TURBO_API"] == "https://cache.internal:5123"


def test_launch_passes_port_input_to_resolver(runtime: MemoryRuntime, settings: Settings) -> None:
    runtime.inputs["port"] = "4555"
    requested: list[str] = []

    def _resolver(value: str) -> int:
        requested.append(value)
        return int(value)

    result = _launcher(runtime, settings, port_resolver=_resolver).launch()

    assert requested == ["4555"]
    assert result.port == 4555


def test_launch_spawns_server_command_with_merged_environment(
    runtime: MemoryRuntime,
    settings: Settings,
) -> None:
    runtime.inputs.update({"storage-provider": "s3", "storage-path": "my-bucket"})
    spawner = _FakeSpawner()

    _launcher(runtime, settings, spawner=spawner, base_env={"PATH": "/bin", "HOME": "/h"}).launch()

    assert len(spawner.calls) == 1
    call = spawner.calls[0]
    assert call["command"] == ("npx", "turborepo-remote-cache")
    assert call["env"] == {
        "PATH": "/bin",
        "HOME": "/h",
        "PORT": "3000",
        "TURBO_TOKEN": TOKEN,
        "STORAGE_PROVIDER": "s3",
        "STORAGE_PATH": "my-bucket",
    }
    assert call["stdout_path"] == settings.log_dir / "turborepo-remote-cache.log"
    assert call["stderr_path"] == settings.log_dir / "turborepo-remote-cache-error.log"


def test_launch_leaves_storage_out_of_environment_when_not_provided(
    runtime: MemoryRuntime,
    settings: Settings,
) -> None:
    spawner = _FakeSpawner()

    _launcher(runtime, settings, spawner=spawner).launch()

    assert "STORAGE_PROVIDER" not in spawner.calls[0]["env"]
    assert "STORAGE_PATH" not in spawner.calls[0]["env"]


def test_launch_waits_for_port_with_configured_readiness(
    runtime: MemoryRuntime,
    settings: Settings,
) -> None:
    wait = _FakeWait()

    _launcher(runtime, settings, wait=wait).launch()

    assert wait.calls == [("localhost", 3000, 30.0, 0.05)]


def test_launch_reports_server_information(runtime: MemoryRuntime, settings: Settings) -> None:
    _launcher(runtime, settings).launch()

    assert runtime.lines == [
        "✅ Turborepo Remote Cache Server started",
        "   PID: 12345",
        "   Port: 3000",
        "   API: http://127.0.0.1:3000",
        "   Team: ci",
    ]


def test_launch_reports_storage_when_provided(runtime: MemoryRuntime, settings: Settings) -> None:
    runtime.inputs.update({"storage-provider": "s3", "storage-path": "my-bucket"})

    _launcher(runtime, settings).launch()

    assert "   Storage Provider: s3" in runtime.lines
    assert "   Storage Path: my-bucket" in runtime.lines


def test_launch_saves_handoff_state(runtime: MemoryRuntime, settings: Settings) -> None:
    _launcher(runtime, settings).launch()

    assert runtime.state == {"serverPid": "12345", "serverPort": "3000"}


def test_launch_saves_empty_pid_when_child_has_none(
    runtime: MemoryRuntime,
    settings: Settings,
) -> None:
    _launcher(runtime, settings, spawner=_FakeSpawner(pid=None)).launch()

    assert runtime.state == {"serverPid": "", "serverPort": "3000"}


def test_launch_fails_when_port_never_opens(runtime: MemoryRuntime, settings: Settings) -> None:
    result = _launcher(runtime, settings, port=4001, wait=_FakeWait(result=False)).launch()

    assert not result.success
    assert result.stage is LaunchStage.TIMED_OUT
    assert runtime.failures == [
        "Failed to start Turborepo Remote Cache Server: Port 4001 did not open within 30 seconds",
    ]
    assert runtime.state == {}
    assert "✅ Turborepo Remote Cache Server started" not in runtime.lines


def test_launch_reports_allocation_failure(runtime: MemoryRuntime, settings: Settings) -> None:
    def _no_port(_requested: str) -> int:
        raise ResourceUnavailableError("No free port available: boom")

    spawner = _FakeSpawner()
    result = _launcher(runtime, settings, spawner=spawner, port_resolver=_no_port).launch()

    assert not result.success
    assert result.stage is LaunchStage.FAILED
    assert runtime.failures == [
        "Failed to start Turborepo Remote Cache Server: No free port available: boom",
    ]
    assert spawner.calls == []
    assert runtime.exported == {}


def test_launch_reports_spawn_failure(runtime: MemoryRuntime, settings: Settings) -> None:
    spawner = _FakeSpawner(error=SpawnError("Server command not found: npx"))

    result = _launcher(runtime, settings, spawner=spawner).launch()

    assert not result.success
    assert runtime.failures == [
        "Failed to start Turborepo Remote Cache Server: Server command not found: npx",
    ]
    assert runtime.state == {}


def test_launch_reports_invalid_port_input(runtime: MemoryRuntime, settings: Settings) -> None:
    runtime.inputs["port"] = "not-a-port"
    launcher = ServerLauncher(
        settings=settings,
        inputs=runtime,
        publisher=runtime,
        state=runtime,
        reporter=runtime,
        spawn=_FakeSpawner(),
        wait=_FakeWait(),
    )

    result = launcher.launch()

    assert not result.success
    assert runtime.failures[0].startswith("Failed to start Turborepo Remote Cache Server: ")
    assert "Invalid port input" in runtime.failures[0]


@pytest.mark.parametrize("provider", ["s3", "google-cloud-storage", "azure-blob-storage"])
def test_launch_accepts_supported_storage_providers(
    runtime: MemoryRuntime,
    settings: Settings,
    provider: str,
) -> None:
    runtime.inputs.update({"storage-provider": provider, "storage-path": f"{provider}-path"})

    result = _launcher(runtime, settings).launch()

    assert result.success
    assert runtime.failures == []


def test_launch_uses_real_token_generator_by_default(tmp_path: Path) -> None:
    runtime = MemoryRuntime()
    launcher = ServerLauncher(
        settings=Settings(log_dir=tmp_path / "logs"),
        inputs=runtime,
        publisher=runtime,
        state=runtime,
        reporter=runtime,
        spawn=_FakeSpawner(),
        wait=_FakeWait(),
        port_resolver=lambda _requested: 3000,
        base_env={},
    )

    launcher.launch()

    assert re.fullmatch(r"[0-9a-f]{64}", runtime.exported["TURBO_TOKEN"])
    assert runtime.exported["TURBO_TOKEN"] != generate_token()

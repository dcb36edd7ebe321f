"""Detached server process helpers: spawn, readiness probe and termination."""

from __future__ import annotations

import logging
import os
import shutil
import signal
import socket
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from turbo_cache_action.errors import ProcessSignalError, SpawnError

logger = logging.getLogger(__name__)

_CONNECT_TIMEOUT_SECONDS = 0.5


@dataclass(slots=True, frozen=True)
class SpawnedServer:
    """What survives of a fire-and-forget spawn: only the pid is kept."""

    pid: int | None
    command: tuple[str, ...]


def spawn_detached(
    command: Sequence[str],
    *,
    env: Mapping[str, str],
    stdout_path: Path,
    stderr_path: Path,
) -> SpawnedServer:
    """Start ``command`` in its own session with output redirected to log files.

    The child outlives this process; no handle to it is returned.
    """

    if not command:
        raise SpawnError("Server command is empty.")
    executable = shutil.which(command[0], path=env.get("PATH"))
    if executable is None:
        raise SpawnError(f"Server command not found: {command[0]}")
    run_args = [executable, *command[1:]]

    stdout_path.parent.mkdir(parents=True, exist_ok=True)
    stderr_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with (
            stdout_path.open("w", encoding="utf-8") as stdout_handle,
            stderr_path.open("w", encoding="utf-8") as stderr_handle,
        ):
            process = subprocess.Popen(  # noqa: S603
                run_args,
                env=dict(env),
                stdin=subprocess.DEVNULL,
                stdout=stdout_handle,
                stderr=stderr_handle,
                close_fds=True,
                **_detach_options(),
            )
    except FileNotFoundError as error:
        raise SpawnError(f"Server command not found: {command[0]}") from error
    except OSError as error:
        raise SpawnError(f"Server failed to start: {error}") from error

    logger.debug("Spawned %s as pid %s", " ".join(run_args), process.pid)
    return SpawnedServer(pid=process.pid, command=tuple(run_args))


def _detach_options() -> dict[str, object]:
    if os.name == "nt":
        flags = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
        return {"creationflags": flags}
    return {"start_new_session": True}


def is_port_open(host: str, port: int) -> bool:
    try:
        with socket.create_connection((host, port), timeout=_CONNECT_TIMEOUT_SECONDS):
            return True
    except OSError:
        return False


def wait_for_port(  # noqa: PLR0913
    host: str,
    port: int,
    *,
    timeout_seconds: float,
    poll_interval_seconds: float = 0.25,
    probe: Callable[[str, int], bool] = is_port_open,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Poll until ``host:port`` accepts TCP connections or the timeout elapses."""

    deadline = clock() + timeout_seconds
    attempts = 0
    while True:
        attempts += 1
        if probe(host, port):
            logger.debug("Port %s open after %d attempt(s)", port, attempts)
            return True
        if clock() >= deadline:
            logger.debug("Port %s still closed after %d attempt(s)", port, attempts)
            return False
        sleep(poll_interval_seconds)


def terminate_pid(pid: str) -> None:
    """Send SIGTERM to ``pid``; any failure is raised as ``ProcessSignalError``."""

    try:
        target = int(pid)
    except ValueError as error:
        raise ProcessSignalError(pid, f"Invalid pid {pid!r}") from error
    # 0 and negative values address process groups, not the server.
    if target <= 0:
        raise ProcessSignalError(pid, f"Invalid pid {pid!r}")
    try:
        os.kill(target, signal.SIGTERM)
    except OSError as error:
        raise ProcessSignalError(pid, error.strerror or str(error)) from error

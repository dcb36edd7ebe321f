"""Shared test fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from turbo_cache_action.actions import MemoryRuntime
from turbo_cache_action.config import ReadinessSettings, Settings

# Minimal stand-in for the cache server: listens on $PORT, logs to stdout/stderr, exits on SIGTERM.
FAKE_SERVER_SCRIPT = """
import os
import signal
import socket
import sys

signal.signal(signal.SIGTERM, lambda *_: sys.exit(0))
sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
sock.bind(("127.0.0.1", int(os.environ["PORT"])))
sock.listen()
print(f"listening on {os.environ['PORT']}", flush=True)
print(f"storage={os.environ.get('STORAGE_PROVIDER', '')}", flush=True)
print("fake server warning", file=sys.stderr, flush=True)
while True:
    conn, _ = sock.accept()
    conn.close()
"""


@pytest.fixture()
def runtime() -> MemoryRuntime:
    return MemoryRuntime()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        log_dir=tmp_path / "logs",
        readiness=ReadinessSettings(timeout_seconds=30.0, poll_interval_seconds=0.05),
    )


@pytest.fixture()
def fake_server_command(tmp_path: Path) -> tuple[str, ...]:
    script = tmp_path / "fake_cache_server.py"
    script.write_text(FAKE_SERVER_SCRIPT.strip() + "\n", "utf-8")
    return (sys.executable, str(script))

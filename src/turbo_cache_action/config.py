"""Runtime configuration for the cache server launch and cleanup phases."""

from __future__ import annotations

import math
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_SERVER_COMMAND = ("npx", "turborepo-remote-cache")
DEFAULT_LOG_DIR = Path("logs")
LOG_FILE_NAME = "turborepo-remote-cache.log"
ERROR_LOG_FILE_NAME = "turborepo-remote-cache-error.log"


@dataclass(slots=True)
class ReadinessSettings:
    """How the launcher waits for the server port to open."""

    timeout_seconds: float = 30.0
    poll_interval_seconds: float = 0.25
    host: str = "localhost"


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    log_dir: Path = DEFAULT_LOG_DIR
    server_command: tuple[str, ...] = DEFAULT_SERVER_COMMAND
    readiness: ReadinessSettings = field(default_factory=ReadinessSettings)

    @property
    def log_file(self) -> Path:
        return self.log_dir / LOG_FILE_NAME

    @property
    def error_log_file(self) -> Path:
        return self.log_dir / ERROR_LOG_FILE_NAME

    @property
    def log_files(self) -> tuple[Path, Path]:
        return self.log_file, self.error_log_file

    @classmethod
    def from_env(cls, log_dir: Path | None = None) -> Settings:
        """Load settings from environment with defaults matching the published action."""

        return cls(
            log_dir=log_dir or Path(os.getenv("TURBO_CACHE_ACTION_LOG_DIR", str(DEFAULT_LOG_DIR))),
            server_command=_parse_command(os.getenv("TURBO_CACHE_ACTION_SERVER_COMMAND", "")),
            readiness=ReadinessSettings(
                timeout_seconds=float(
                    os.getenv("TURBO_CACHE_ACTION_READY_TIMEOUT_SECONDS", "30"),
                ),
                poll_interval_seconds=float(
                    os.getenv("TURBO_CACHE_ACTION_READY_POLL_INTERVAL_SECONDS", "0.25"),
                ),
                host=os.getenv("TURBO_CACHE_ACTION_READY_HOST", "localhost"),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if a setting is out of range."""

        if not self.server_command:
            raise ValueError("TURBO_CACHE_ACTION_SERVER_COMMAND must not be empty.")
        if not _positive_finite(self.readiness.timeout_seconds):
            raise ValueError("TURBO_CACHE_ACTION_READY_TIMEOUT_SECONDS must be > 0 and finite.")
        if not _positive_finite(self.readiness.poll_interval_seconds):
            raise ValueError(
                "TURBO_CACHE_ACTION_READY_POLL_INTERVAL_SECONDS must be > 0 and finite.",
            )
        if not self.readiness.host.strip():
            raise ValueError("TURBO_CACHE_ACTION_READY_HOST must not be empty.")


def _positive_finite(value: float) -> bool:
    return math.isfinite(value) and value > 0


def _parse_command(raw: str) -> tuple[str, ...]:
    stripped = raw.strip()
    if not stripped:
        return DEFAULT_SERVER_COMMAND
    return tuple(shlex.split(stripped))

"""Inputs, stages and outcomes of the launch and cleanup phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from turbo_cache_action.actions.base import InputSource

DEFAULT_TEAM_ID = "ci"
DEFAULT_HOST = "http://127.0.0.1"


class LaunchStage(str, Enum):
    """Launch phase progression; any stage before ``ready`` may end in ``failed``."""

    IDLE = "idle"
    ALLOCATING_RESOURCES = "allocating_resources"
    SPAWNING = "spawning"
    AWAITING_READINESS = "awaiting_readiness"
    READY = "ready"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class CleanupStage(str, Enum):
    """Cleanup phase progression; ``reading_logs`` runs even when signaling failed."""

    IDLE = "idle"
    READING_STATE = "reading_state"
    NO_PID = "no_pid"
    SIGNALING = "signaling"
    READING_LOGS = "reading_logs"
    DONE = "done"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class LaunchInputs:
    """Step inputs of the launch phase, with defaults applied."""

    storage_provider: str = ""
    storage_path: str = ""
    team_id: str = DEFAULT_TEAM_ID
    host: str = DEFAULT_HOST
    port: str = ""

    @classmethod
    def from_source(cls, source: InputSource) -> LaunchInputs:
        return cls(
            storage_provider=source.get_input("storage-provider"),
            storage_path=source.get_input("storage-path"),
            team_id=source.get_input("team-id") or DEFAULT_TEAM_ID,
            host=source.get_input("host") or DEFAULT_HOST,
            port=source.get_input("port"),
        )


@dataclass(slots=True)
class LaunchResult:
    """Terminal outcome of the launch phase."""

    success: bool
    stage: LaunchStage
    message: str = ""
    pid: int | None = None
    port: int | None = None
    api_url: str | None = None


@dataclass(slots=True)
class CleanupResult:
    """Terminal outcome of the cleanup phase."""

    success: bool
    stage: CleanupStage
    message: str = ""
    stopped: bool = False
    displayed_logs: list[str] = field(default_factory=list)

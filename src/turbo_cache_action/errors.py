"""Error taxonomy for the cache server lifecycle."""

from __future__ import annotations


class CacheServerError(RuntimeError):
    """Base class for failures raised while managing the cache server."""


class ResourceUnavailableError(CacheServerError):
    """No free local port could be reserved for the server."""


class SpawnError(CacheServerError):
    """The server command could not be started."""


class ReadinessTimeoutError(CacheServerError):
    """The server port never accepted connections within the timeout."""

    def __init__(self, port: int, timeout_seconds: float) -> None:
        super().__init__(f"Port {port} did not open within {timeout_seconds:g} seconds")
        self.port = port
        self.timeout_seconds = timeout_seconds


class ProcessSignalError(CacheServerError):
    """A termination signal could not be delivered to the server process."""

    def __init__(self, pid: str, message: str) -> None:
        super().__init__(message)
        self.pid = pid


class LogReadError(CacheServerError):
    """A captured server log file could not be read."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class StateAccessError(CacheServerError):
    """Reading or writing the cross-phase state failed."""


class ServerEnvironmentError(ValueError):
    """The environment composed for the server process violates its contract."""

    def __init__(self, issues: list[str]) -> None:
        super().__init__(f"Invalid server environment: {'; '.join(issues)}")
        self.issues = issues

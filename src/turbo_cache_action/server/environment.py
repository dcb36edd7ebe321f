"""Contract for the environment handed to the cache server process."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from turbo_cache_action.errors import ServerEnvironmentError

_REQUIRED_FIELDS = ("PORT", "TURBO_TOKEN")
_OPTIONAL_FIELDS = ("STORAGE_PROVIDER", "STORAGE_PATH")


@dataclass(slots=True, frozen=True)
class ServerEnvironment:
    """Validated variables the server reads on startup."""

    port: str
    token: str
    storage_provider: str | None = None
    storage_path: str | None = None

    def as_env(self) -> dict[str, str]:
        """Variables to overlay on the inherited environment; unset fields are left out."""

        env = {"PORT": self.port, "TURBO_TOKEN": self.token}
        if self.storage_provider is not None:
            env["STORAGE_PROVIDER"] = self.storage_provider
        if self.storage_path is not None:
            env["STORAGE_PATH"] = self.storage_path
        return env

    def merged_over(self, base: Mapping[str, str]) -> dict[str, str]:
        return {**base, **self.as_env()}


def build_server_environment(
    *,
    port: int,
    token: str,
    storage_provider: str = "",
    storage_path: str = "",
) -> ServerEnvironment:
    """Compose the server environment; empty storage values are omitted."""

    raw: dict[str, Any] = {"PORT": str(port), "TURBO_TOKEN": token}
    if storage_provider:
        raw["STORAGE_PROVIDER"] = storage_provider
    if storage_path:
        raw["STORAGE_PATH"] = storage_path
    return parse_server_environment(raw)


def parse_server_environment(raw: Mapping[str, Any]) -> ServerEnvironment:
    """Validate a raw mapping and report every offending field at once."""

    issues: list[str] = []
    for name in _REQUIRED_FIELDS:
        if name not in raw:
            issues.append(f"{name} is required")
        elif not isinstance(raw[name], str):
            issues.append(f"{name} must be a string, got {type(raw[name]).__name__}")
    for name in _OPTIONAL_FIELDS:
        value = raw.get(name)
        if value is not None and not isinstance(value, str):
            issues.append(f"{name} must be a string when provided, got {type(value).__name__}")
    if isinstance(raw.get("PORT"), str) and not raw["PORT"].isdigit():
        issues.append(f"PORT must be numeric, got {raw['PORT']!r}")
    if issues:
        raise ServerEnvironmentError(issues)

    return ServerEnvironment(
        port=raw["PORT"],
        token=raw["TURBO_TOKEN"],
        storage_provider=raw.get("STORAGE_PROVIDER"),
        storage_path=raw.get("STORAGE_PATH"),
    )

"""Interfaces to the CI platform used by the launch and cleanup phases."""

from __future__ import annotations

from typing import Protocol


class InputSource(Protocol):
    """Read step inputs configured by the workflow author."""

    def get_input(self, name: str) -> str:
        """Return the input value, or an empty string when it is not set."""


class StateStore(Protocol):
    """Key-value state that survives from the main step to the post step of one job."""

    def get_state(self, name: str) -> str:
        """Return a value saved by an earlier phase, or an empty string."""

    def save_state(self, name: str, value: str) -> None:
        """Persist a value for a later phase."""


class EnvironmentPublisher(Protocol):
    """Expose variables to every later step of the job."""

    def export_variable(self, name: str, value: str) -> None:
        """Publish one environment variable."""

    def set_secret(self, value: str) -> None:
        """Mask a value in all later log output."""


class Reporter(Protocol):
    """Job log output and the failure channel."""

    def info(self, message: str) -> None: ...

    def debug(self, message: str) -> None: ...

    def start_group(self, title: str) -> None: ...

    def end_group(self) -> None: ...

    def set_failed(self, message: str) -> None:
        """Report the terminal failure of the current phase."""

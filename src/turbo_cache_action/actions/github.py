"""GitHub Actions runtime: inputs, state, exported variables and workflow commands.

Implements the runner's environment-file protocol (``GITHUB_ENV``,
``GITHUB_STATE``) and the ``::command::`` stdout protocol the same way the
official toolkit does, so the action can be written in Python without Node.
"""

from __future__ import annotations

import logging
import os
import uuid
from collections.abc import MutableMapping
from pathlib import Path
from typing import TextIO

import click

from turbo_cache_action.errors import StateAccessError

logger = logging.getLogger(__name__)


class GithubActionsRuntime:
    """All CI collaborators of the phases, backed by the Actions runner."""

    def __init__(
        self,
        *,
        environ: MutableMapping[str, str] | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._stream = stream
        self.failed = False

    # -- inputs ----------------------------------------------------------------

    def get_input(self, name: str) -> str:
        key = f"INPUT_{name.replace(' ', '_').upper()}"
        return self._environ.get(key, "").strip()

    # -- state -----------------------------------------------------------------

    def get_state(self, name: str) -> str:
        return self._environ.get(f"STATE_{name}", "")

    def save_state(self, name: str, value: str) -> None:
        state_path = self._environ.get("GITHUB_STATE", "")
        if not state_path:
            self._issue("save-state", value, name=name)
            return
        try:
            _append_file_command(Path(state_path), name, value)
        except OSError as error:
            raise StateAccessError(f"Cannot write state {name!r}: {error}") from error
        logger.debug("Saved state %s to %s", name, state_path)

    # -- environment -----------------------------------------------------------

    def export_variable(self, name: str, value: str) -> None:
        self._environ[name] = value
        env_path = self._environ.get("GITHUB_ENV", "")
        if not env_path:
            self._issue("set-env", value, name=name)
            return
        try:
            _append_file_command(Path(env_path), name, value)
        except OSError as error:
            raise StateAccessError(f"Cannot export variable {name!r}: {error}") from error
        logger.debug("Exported %s to %s", name, env_path)

    def set_secret(self, value: str) -> None:
        self._issue("add-mask", value)

    # -- reporting -------------------------------------------------------------

    def info(self, message: str) -> None:
        click.echo(message, file=self._stream)

    def debug(self, message: str) -> None:
        self._issue("debug", message)

    def start_group(self, title: str) -> None:
        self._issue("group", title)

    def end_group(self) -> None:
        self._issue("endgroup", "")

    def set_failed(self, message: str) -> None:
        self.failed = True
        self._issue("error", message)

    def _issue(self, command: str, message: str, **properties: str) -> None:
        click.echo(format_command(command, message, **properties), file=self._stream)


def format_command(command: str, message: str, **properties: str) -> str:
    """Render one ``::command key=value::message`` workflow command line."""

    rendered_properties = ",".join(
        f"{key}={_escape_property(value)}" for key, value in properties.items() if value
    )
    head = f"{command} {rendered_properties}" if rendered_properties else command
    return f"::{head}::{_escape_data(message)}"


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


def _append_file_command(path: Path, name: str, value: str) -> None:
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in name or delimiter in value:
        raise ValueError(f"Unexpected input: value for {name!r} contains the delimiter")
    with path.open("a", encoding="utf-8") as handle:
        handle.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")

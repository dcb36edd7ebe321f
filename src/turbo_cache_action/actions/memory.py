"""In-process runtime that records everything, for tests and local dry runs."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class MemoryRuntime:
    """Dictionary-backed inputs, state and exports with a captured log."""

    inputs: dict[str, str] = field(default_factory=dict)
    state: dict[str, str] = field(default_factory=dict)
    exported: dict[str, str] = field(default_factory=dict)
    secrets: list[str] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)
    debug_lines: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    def get_input(self, name: str) -> str:
        return self.inputs.get(name, "").strip()

    def get_state(self, name: str) -> str:
        return self.state.get(name, "")

    def save_state(self, name: str, value: str) -> None:
        self.state[name] = value

    def export_variable(self, name: str, value: str) -> None:
        self.exported[name] = value

    def set_secret(self, value: str) -> None:
        self.secrets.append(value)

    def info(self, message: str) -> None:
        self.lines.append(message)

    def debug(self, message: str) -> None:
        self.debug_lines.append(message)

    def start_group(self, title: str) -> None:
        self.lines.append(f"::group::{title}")

    def end_group(self) -> None:
        self.lines.append("::endgroup::")

    def set_failed(self, message: str) -> None:
        self.failures.append(message)

"""State handed from the launch phase to the cleanup phase."""

from __future__ import annotations

from dataclasses import dataclass

from turbo_cache_action.actions.base import StateStore
from turbo_cache_action.errors import StateAccessError

SERVER_PID_KEY = "serverPid"
SERVER_PORT_KEY = "serverPort"


@dataclass(slots=True, frozen=True)
class HandoffState:
    """Where the detached server can be found; an empty pid means it was never started."""

    server_pid: str = ""
    server_port: str = ""

    @property
    def started(self) -> bool:
        return bool(self.server_pid)


def save_handoff(store: StateStore, *, pid: int | None, port: int) -> HandoffState:
    """Persist pid and port as strings for the post step."""

    state = HandoffState(
        server_pid="" if pid is None else str(pid),
        server_port=str(port),
    )
    try:
        store.save_state(SERVER_PID_KEY, state.server_pid)
        store.save_state(SERVER_PORT_KEY, state.server_port)
    except StateAccessError:
        raise
    except Exception as error:
        raise StateAccessError(f"Cannot save server state: {error}") from error
    return state


def load_handoff(store: StateStore) -> HandoffState:
    try:
        return HandoffState(
            server_pid=store.get_state(SERVER_PID_KEY).strip(),
            server_port=store.get_state(SERVER_PORT_KEY).strip(),
        )
    except StateAccessError:
        raise
    except Exception as error:
        raise StateAccessError(f"Cannot read server state: {error}") from error

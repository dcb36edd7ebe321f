"""Port and token allocation for a new cache server."""

from __future__ import annotations

import secrets
import socket

from turbo_cache_action.errors import ResourceUnavailableError

TOKEN_BYTES = 32
MAX_PORT = 65_535


def allocate_port(host: str = "127.0.0.1") -> int:
    """Return a TCP port the OS reports as free right now."""

    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind((host, 0))
            return int(sock.getsockname()[1])
    except OSError as error:
        raise ResourceUnavailableError(f"No free port available: {error}") from error


def generate_token() -> str:
    """Return 32 random bytes as 64 lowercase hex characters."""

    return secrets.token_hex(TOKEN_BYTES)


def resolve_port(requested: str) -> int:
    """Use the pinned ``port`` input when set, otherwise allocate one."""

    stripped = requested.strip()
    if not stripped:
        return allocate_port()
    try:
        port = int(stripped)
    except ValueError as error:
        raise ValueError(f"Invalid port input: {requested!r}") from error
    if not 1 <= port <= MAX_PORT:
        raise ValueError(f"Invalid port input: {port} (must be 1-{MAX_PORT})")
    return port

"""Post phase: stop the detached cache server and surface its captured logs."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from turbo_cache_action.actions.base import Reporter, StateStore
from turbo_cache_action.errors import LogReadError
from turbo_cache_action.server.handoff import load_handoff
from turbo_cache_action.server.models import CleanupResult, CleanupStage
from turbo_cache_action.server.process import terminate_pid

logger = logging.getLogger(__name__)

FAILURE_PREFIX = "Error in post action: "
NOT_STARTED_MESSAGE = "❌ Turborepo Remote Cache Server was not started or PID not found"


class ServerCleanup:
    """Signal the server recorded by the launch phase, then print its logs."""

    def __init__(
        self,
        *,
        state: StateStore,
        reporter: Reporter,
        log_files: Sequence[Path],
        terminate: Callable[[str], None] = terminate_pid,
    ) -> None:
        self._state = state
        self._reporter = reporter
        self._log_files = tuple(log_files)
        self._terminate = terminate
        self.stage = CleanupStage.IDLE

    def cleanup(self) -> CleanupResult:
        """Run the phase; only an unexpected error marks it failed."""

        try:
            return self._cleanup()
        except Exception as error:  # noqa: BLE001
            logger.debug("Cleanup failed during %s", self.stage.value, exc_info=True)
            self.stage = CleanupStage.FAILED
            message = f"{FAILURE_PREFIX}{error}"
            self._reporter.set_failed(message)
            return CleanupResult(success=False, stage=self.stage, message=message)

    def _cleanup(self) -> CleanupResult:
        self.stage = CleanupStage.READING_STATE
        handoff = load_handoff(self._state)
        if not handoff.started:
            self.stage = CleanupStage.NO_PID
            self._reporter.info(NOT_STARTED_MESSAGE)
            return CleanupResult(success=True, stage=self.stage, message=NOT_STARTED_MESSAGE)

        self.stage = CleanupStage.SIGNALING
        stopped = self._stop_server(handoff.server_pid)

        self.stage = CleanupStage.READING_LOGS
        displayed = self._display_logs()

        self.stage = CleanupStage.DONE
        return CleanupResult(
            success=True,
            stage=self.stage,
            stopped=stopped,
            displayed_logs=displayed,
        )

    def _stop_server(self, pid: str) -> bool:
        try:
            self._terminate(pid)
        except Exception as error:  # noqa: BLE001
            self._reporter.info(f"❌ Failed to stop server process {pid}: {error}")
            return False
        self._reporter.info(f"✅ Turborepo Remote Cache Server stopped (PID: {pid})")
        return True

    def _display_logs(self) -> list[str]:
        # Files are read in parallel; groups are rendered here so they never interleave.
        with ThreadPoolExecutor(max_workers=max(1, len(self._log_files))) as executor:
            futures = [executor.submit(read_log_file, path) for path in self._log_files]

        displayed: list[str] = []
        for path, future in zip(self._log_files, futures, strict=True):
            try:
                content = future.result()
            except LogReadError as error:
                self._reporter.debug(f"Could not read log file {error.path}: {error}")
                continue
            if not content.strip():
                continue
            self._reporter.start_group(f"📋 {path}")
            self._reporter.info(indent_log(content))
            self._reporter.end_group()
            displayed.append(str(path))
        return displayed


def read_log_file(path: Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as error:
        raise LogReadError(str(path), error.strerror or str(error)) from error


def indent_log(content: str) -> str:
    """Prefix every line with two spaces, keeping order and blank lines."""

    return "\n".join(f"  {line}" for line in content.split("\n"))

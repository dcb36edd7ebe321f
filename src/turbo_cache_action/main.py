"""CLI entrypoint for turbo-cache-action."""

import logging
from pathlib import Path

import rich_click as click

from turbo_cache_action import __version__
from turbo_cache_action.controllers import CleanupCommand, LaunchCommand, ServerCliController

click.rich_click.USE_MARKDOWN = True
SERVER_CONTROLLER = ServerCliController()


@click.group()
@click.version_option(version=__version__, prog_name="turbo-cache-action")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging.")
def turbo_cache_action(verbose: bool) -> None:
    """Run a Turborepo remote cache server for the duration of a CI job."""

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@turbo_cache_action.command("launch")
@click.option(
    "--log-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for server logs. Defaults to `logs`.",
)
def launch(log_dir: Path | None) -> None:
    """Start the cache server and export `TURBO_API`, `TURBO_TOKEN` and `TURBO_TEAM`."""

    result = SERVER_CONTROLLER.launch(LaunchCommand(log_dir=log_dir))
    if not result.success:
        raise SystemExit(1)


@turbo_cache_action.command("cleanup")
@click.option(
    "--log-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory the server logs were written to. Defaults to `logs`.",
)
def cleanup(log_dir: Path | None) -> None:
    """Stop the cache server started by `launch` and print its logs."""

    result = SERVER_CONTROLLER.cleanup(CleanupCommand(log_dir=log_dir))
    if not result.success:
        raise SystemExit(1)


if __name__ == "__main__":  # pragma: no cover
    turbo_cache_action()

"""toolbench CLI -- terminal interface for benchmarking tool use across providers.

This module is NEVER imported from toolbench/__init__.py.
It is only loaded via the ``toolbench`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from toolbench.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from toolbench.models.config import BenchSettings
    from toolbench.storage.store import SessionStore


def _configure_logging(verbosity: int) -> None:
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(level if level == logging.DEBUG else logging.WARNING)


@click.group()
@click.option(
    "--db",
    default="chat_sessions.db",
    envvar="TOOLBENCH_DB",
    help="Path to the session database.",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Log more detail (-v for INFO, -vv for DEBUG).",
)
@click.pass_context
def cli(ctx: click.Context, db: str, verbose: int) -> None:
    """toolbench: benchmark LLM providers on tool-use conversations."""
    load_dotenv()
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db


def _get_settings(ctx: click.Context) -> BenchSettings:
    """Build run settings from the environment plus the --db option."""
    from toolbench.models.config import BenchSettings

    return BenchSettings.from_env(db_path=ctx.obj["db_path"])


@contextmanager
def _store_session(ctx: click.Context) -> Iterator[tuple[SessionStore, Console]]:
    """Context manager that opens the session store, yields (store, console), and handles cleanup.

    Ensures the store is closed on exit and formats exceptions as CLI errors.
    """
    import os

    from toolbench.storage.store import SessionStore

    console = get_console()
    db_path = ctx.obj["db_path"]
    try:
        if db_path != ":memory:" and not os.path.exists(db_path):
            format_error(f"Database not found: {db_path}", console)
            raise SystemExit(1)
        store = SessionStore.open(db_path)
        try:
            yield store, console
        finally:
            store.close()
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from toolbench.cli.commands.chat import chat  # noqa: E402
from toolbench.cli.commands.run import run  # noqa: E402
from toolbench.cli.commands.bench import bench  # noqa: E402
from toolbench.cli.commands.sessions import export, sessions, show  # noqa: E402

cli.add_command(chat)
cli.add_command(run)
cli.add_command(bench)
cli.add_command(sessions)
cli.add_command(show)
cli.add_command(export)

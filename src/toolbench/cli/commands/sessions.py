"""toolbench sessions / show / export -- browse stored sessions."""

from __future__ import annotations

import click
from rich.markup import escape

from toolbench.cli.formatting import format_history, format_sessions


@click.command()
@click.pass_context
def sessions(ctx: click.Context) -> None:
    """List stored sessions, newest first."""
    from toolbench.cli import _store_session

    with _store_session(ctx) as (store, console):
        format_sessions(store.list_sessions(), console)


@click.command()
@click.argument("session_id")
@click.pass_context
def show(ctx: click.Context, session_id: str) -> None:
    """Show the message history of SESSION_ID."""
    from toolbench.cli import _store_session

    with _store_session(ctx) as (store, console):
        format_history(store.load_history(session_id), console)
        failures = store.load_failures(session_id)
        if failures:
            console.print(f"\n[red]{len(failures)} failed turn(s):[/red]")
            for failure in failures:
                console.print(
                    f"  [dim]{failure.created_at:%Y-%m-%d %H:%M:%S}[/dim] "
                    f"{escape(failure.error_type)}: {escape(failure.error_message)}",
                    highlight=False,
                )


@click.command()
@click.argument("session_id")
@click.option(
    "-o",
    "--output",
    "output",
    default=None,
    type=click.Path(dir_okay=False, writable=True),
    help="Output file (default: session_<id>.txt).",
)
@click.pass_context
def export(ctx: click.Context, session_id: str, output: str | None) -> None:
    """Export SESSION_ID as plain text, one 'role: content' line per message."""
    from toolbench.cli import _store_session

    with _store_session(ctx) as (store, console):
        text = store.export_session(session_id)
        path = output or f"session_{session_id}.txt"
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(text)
        console.print(f"[green]Session exported to {path}[/green]", highlight=False)

"""Rich formatting helpers for the toolbench CLI.

Provides functions that format SDK data structures for terminal display.
Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from toolbench.models.message import Role
from toolbench.toolkit.models import RunCommand

if TYPE_CHECKING:
    from collections.abc import Sequence

    from toolbench.conversation.models import BenchmarkResult, TurnResult
    from toolbench.models.message import Message
    from toolbench.models.session import SessionSummary
    from toolbench.toolkit.models import ToolDirective, ToolResult

_ROLE_STYLES: dict[Role, tuple[str, str]] = {
    Role.USER: ("You:", "blue"),
    Role.ASSISTANT: ("Assistant:", "green"),
    Role.SYSTEM: ("System:", "magenta"),
    Role.TOOL: ("Tool:", "cyan"),
}

_PREVIEW_CHARS = 60


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def _preview(text: str, limit: int = _PREVIEW_CHARS) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


def format_tool_call(directive: ToolDirective, console: Console) -> None:
    """Announce a directive about to run."""
    if isinstance(directive, RunCommand):
        console.print(
            f"[bold magenta]System:[/bold magenta] Running command: "
            f"[magenta]{escape(directive.command)}[/magenta]"
        )
    else:
        console.print(
            f"[bold magenta]System:[/bold magenta] Searching the web for: "
            f"[magenta]{escape(directive.query)}[/magenta]"
        )


def format_tool_result(directive: ToolDirective, result: ToolResult, console: Console) -> None:
    """Display a tool result."""
    status = "[green]ok[/green]" if result.success else "[red]failed[/red]"
    console.print(f"[bold magenta]System:[/bold magenta] {directive.kind.value} {status} "
                  f"[dim]({result.duration_s:.2f}s)[/dim]")
    if result.error:
        console.print(f"  [red]{escape(result.error)}[/red]")
    if result.output:
        console.print(escape(result.output), style="dim")


def format_reply(text: str, console: Console) -> None:
    """Display the assistant's answer."""
    console.print(f"[bold green]Assistant:[/bold green] [green]{escape(text)}[/green]\n")


def format_turn(result: TurnResult, console: Console) -> None:
    """Display the outcome of a turn."""
    if result.completed:
        format_reply(result.final_text, console)
    elif result.error is not None:
        label = "API Error after tool use" if result.used_tool else "API Error"
        console.print(
            f"[bold green]Assistant:[/bold green] [red]{label}[/red] "
            f"([red]{escape(str(result.error))}[/red])"
        )
    else:
        console.print("[yellow]Turn aborted.[/yellow]")


def format_history(messages: Sequence[Message], console: Console) -> None:
    """Display a session's history with role colours."""
    if not messages:
        console.print("[dim]No messages.[/dim]")
        return
    console.print("\n[bold yellow]Session History:[/bold yellow]\n")
    for message in messages:
        label, colour = _ROLE_STYLES[message.role]
        console.print(f"[bold {colour}]{label}[/bold {colour}] [{colour}]{escape(message.content)}[/{colour}]")


def format_sessions(sessions: Sequence[SessionSummary], console: Console) -> None:
    """Display stored sessions in a compact table."""
    if not sessions:
        console.print("[dim]No sessions.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Session", style="yellow")
    table.add_column("Provider", style="cyan")
    table.add_column("Model")
    table.add_column("Created", style="dim")
    table.add_column("Msgs", justify="right", style="green")
    table.add_column("Fails", justify="right", style="red")

    for i, summary in enumerate(sessions, start=1):
        table.add_row(
            str(i),
            summary.id,
            summary.provider,
            escape(summary.model),
            summary.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            str(summary.message_count),
            str(summary.failure_count),
        )

    console.print("[bold yellow]Previous Sessions:[/bold yellow]")
    console.print(table)


def format_benchmark(results: Sequence[BenchmarkResult], console: Console) -> None:
    """Display a side-by-side comparison of provider results."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Provider", style="cyan")
    table.add_column("Model")
    table.add_column("Status")
    table.add_column("Directive")
    table.add_column("Tool", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Answer")

    for r in results:
        turn = r.turn
        if turn is None:
            table.add_row(r.provider, escape(r.model), "[red]skipped[/red]", "", "", "", escape(_preview(r.error)))
            continue
        status = "[green]completed[/green]" if turn.completed else f"[red]{turn.status.value}[/red]"
        directive = escape(_preview(turn.directive.to_marker(), 30)) if turn.directive else "-"
        if turn.tool_result is None:
            tool = "-"
        else:
            tool = "[green]ok[/green]" if turn.tool_result.success else "[red]fail[/red]"
        latency = sum(
            reply.latency_s for reply in (turn.reply, turn.final_reply) if reply is not None
        )
        answer = turn.final_text if turn.completed else r.error
        table.add_row(
            r.provider,
            escape(r.model),
            status,
            directive,
            tool,
            f"{latency:.2f}s",
            escape(_preview(answer)),
        )

    console.print(table)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)

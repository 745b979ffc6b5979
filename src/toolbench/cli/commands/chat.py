"""toolbench chat -- interactive benchmarking session with one provider."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from toolbench.cli.formatting import (
    format_error,
    format_tool_call,
    format_tool_result,
    format_turn,
    get_console,
)
from toolbench.models.config import ProviderKind

if TYPE_CHECKING:
    from rich.console import Console

    from toolbench.conversation import ConversationLoop

EXIT_COMMANDS = frozenset({"exit", "quit"})


@click.command()
@click.option(
    "--provider",
    "-p",
    type=click.Choice([k.value for k in ProviderKind], case_sensitive=False),
    prompt="Select an API provider",
    help="Provider to chat with.",
)
@click.option("--no-tools", is_flag=True, help="Do not parse or execute tool directives.")
@click.option("--no-search", is_flag=True, help="Disable the web search tool.")
@click.option("--resume", "resume_id", default=None, help="Continue a stored session by id.")
@click.pass_context
def chat(
    ctx: click.Context,
    provider: str,
    no_tools: bool,
    no_search: bool,
    resume_id: str | None,
) -> None:
    """Chat with a provider; type 'exit' or 'quit' to end the session."""
    from toolbench.cli import _get_settings
    from toolbench.conversation import ConversationLoop, LoopConfig, open_run_context
    from toolbench.models.config import ProviderConfig

    console = get_console()
    try:
        settings = _get_settings(ctx)
        provider_config = ProviderConfig.from_env(provider)
        config = LoopConfig(
            tools_enabled=not no_tools,
            search_enabled=not no_search,
            max_attempts=settings.max_attempts,
            on_tool_call=lambda d: format_tool_call(d, console),
            on_tool_result=lambda d, r: format_tool_result(d, r, console),
        )
        with open_run_context(provider_config, settings) as run_ctx:
            if resume_id is not None:
                loop = ConversationLoop.resume(run_ctx, resume_id, config)
            else:
                loop = ConversationLoop(run_ctx, config)
            with loop:
                session = loop.start()
                verb = "Resumed" if resume_id else "Started"
                console.print(
                    f"[bold yellow]{verb} session {session.id}[/bold yellow] "
                    f"with [cyan]{provider_config.model_name}[/cyan]. "
                    "Type 'exit' or 'quit' to end."
                )
                _chat_loop(loop, console)
        console.print("[dim]Session ended.[/dim]")
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


def _chat_loop(loop: ConversationLoop, console: Console) -> None:
    while True:
        try:
            user_input = console.input("[bold blue]You:[/bold blue] ")
        except (EOFError, KeyboardInterrupt):
            console.print()
            return
        prompt = user_input.strip()
        if not prompt:
            continue
        if prompt.lower() in EXIT_COMMANDS:
            return
        format_turn(loop.run_turn(prompt), console)

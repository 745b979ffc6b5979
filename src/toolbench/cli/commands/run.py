"""toolbench run -- single non-interactive turn."""

from __future__ import annotations

import json

import click

from toolbench.cli.formatting import (
    format_error,
    format_tool_call,
    format_tool_result,
    format_turn,
    get_console,
)
from toolbench.models.config import ProviderKind


@click.command()
@click.option(
    "--provider",
    "-p",
    required=True,
    type=click.Choice([k.value for k in ProviderKind], case_sensitive=False),
    help="Provider to send the prompt to.",
)
@click.option("--no-tools", is_flag=True, help="Do not parse or execute tool directives.")
@click.option("--no-search", is_flag=True, help="Disable the web search tool.")
@click.option("--json", "as_json", is_flag=True, help="Print the turn as JSON.")
@click.argument("prompt")
@click.pass_context
def run(
    ctx: click.Context,
    provider: str,
    no_tools: bool,
    no_search: bool,
    as_json: bool,
    prompt: str,
) -> None:
    """Send PROMPT to a provider for one turn and print the answer.

    Exits with status 1 if the turn does not complete.
    """
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
        )
        if not as_json:
            config.on_tool_call = lambda d: format_tool_call(d, console)
            config.on_tool_result = lambda d, r: format_tool_result(d, r, console)

        with open_run_context(provider_config, settings) as run_ctx:
            with ConversationLoop(run_ctx, config) as loop:
                result = loop.run_turn(prompt)
                session_id = loop.session.id if loop.session else None

        if as_json:
            payload = {
                "session_id": session_id,
                "provider": provider_config.kind.value,
                "model": provider_config.model_name,
                "status": result.status.value,
                "directive": result.directive.to_marker() if result.directive else None,
                "tool_result": result.tool_result.to_dict() if result.tool_result else None,
                "answer": result.final_text if result.completed else None,
                "error": str(result.error) if result.error else None,
            }
            click.echo(json.dumps(payload, indent=2))
        else:
            format_turn(result, console)
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    if not result.completed:
        raise SystemExit(1)

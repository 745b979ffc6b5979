"""toolbench bench -- same prompt against several providers."""

from __future__ import annotations

import click

from toolbench.cli.formatting import format_benchmark, format_error, get_console
from toolbench.models.config import ProviderKind


@click.command()
@click.option(
    "--provider",
    "-p",
    "providers",
    multiple=True,
    type=click.Choice([k.value for k in ProviderKind], case_sensitive=False),
    help="Provider to include (repeatable). Defaults to all providers.",
)
@click.option("--no-tools", is_flag=True, help="Do not parse or execute tool directives.")
@click.option("--no-search", is_flag=True, help="Disable the web search tool.")
@click.argument("prompt")
@click.pass_context
def bench(
    ctx: click.Context,
    providers: tuple[str, ...],
    no_tools: bool,
    no_search: bool,
    prompt: str,
) -> None:
    """Send PROMPT to each provider in turn and compare the results."""
    from toolbench.cli import _get_settings
    from toolbench.conversation import LoopConfig, run_benchmark
    from toolbench.exceptions import StoreError
    from toolbench.models.config import ProviderConfig
    from toolbench.storage.store import SessionStore

    console = get_console()
    try:
        settings = _get_settings(ctx)
        selected = list(dict.fromkeys(providers)) or [k.value for k in ProviderKind]
        configs = [ProviderConfig.from_env(name) for name in selected]
        config = LoopConfig(
            tools_enabled=not no_tools,
            search_enabled=not no_search,
            max_attempts=settings.max_attempts,
        )

        store = None
        try:
            store = SessionStore.open(settings.db_path)
        except StoreError as exc:
            console.print(f"[yellow]Session store unavailable: {exc}[/yellow]", highlight=False)
        try:
            with console.status("Running benchmark..."):
                results = run_benchmark(prompt, configs, settings, store=store, config=config)
        finally:
            if store is not None:
                store.close()

        format_benchmark(results, console)
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    if not any(r.completed for r in results):
        raise SystemExit(1)

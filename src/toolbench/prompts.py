"""Prompts for benchmarking sessions.

Provides the system prompt that teaches a model the directive syntax,
and the text used to feed a tool result back into the conversation.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from toolbench.toolkit.models import RunCommand

if TYPE_CHECKING:
    from toolbench.toolkit.models import ToolDirective, ToolResult


def build_system_prompt(
    model_name: str,
    *,
    tools_enabled: bool = True,
    search_enabled: bool = True,
    year: int | None = None,
) -> str:
    """Build the seed system prompt for a session.

    Args:
        model_name: Model name announced to the model.
        tools_enabled: Advertise the directive syntax. When False the
            prompt is a plain assistant prompt.
        search_enabled: Advertise ``[SEARCH: ...]`` in addition to
            ``[RUN_COMMAND ...]``.
        year: Current year for search grounding. Defaults to today's.

    Returns:
        The system prompt text.
    """
    if not tools_enabled:
        return f"You are an AI assistant powered by the {model_name} model."

    lines = [
        f"You are a helpful AI assistant powered by the {model_name} model.",
        "You have the ability to run any Linux shell command.",
        "Your response MUST be ONLY the tool command. Do not add any explanation.",
        "Do NOT use interactive commands (like 'nano', 'vim'). "
        "Use non-interactive commands like `cat` to read files.",
        "",
        "Tool format:",
        "- Run a shell command: `[RUN_COMMAND <command to run>]`",
    ]
    if search_enabled:
        current_year = year if year is not None else date.today().year
        lines.append(f"- Search the web: `[SEARCH: your query]`. Current year: {current_year}")
    lines.append("")
    lines.append(
        "After a tool runs you will receive its output. "
        "Then answer the user in plain text."
    )
    return "\n".join(lines)


def format_tool_message(directive: ToolDirective, result: ToolResult) -> str:
    """Render a tool result as the text fed back to the model."""
    if isinstance(directive, RunCommand):
        if result.success:
            header = "Command output:"
        elif result.exit_code is not None:
            header = f"Command failed (exit status {result.exit_code}). Output:"
        else:
            header = f"Command failed: {result.error}"
        body = result.output if result.output else "(no output)"
    else:
        if result.success:
            header = f"Web search results for '{directive.query}':"
            body = result.output
        else:
            header = f"Web search for '{directive.query}' failed: {result.error}"
            body = ""
    if result.truncated:
        body += "\n[output truncated]"
    return f"{header}\n{body}" if body else header

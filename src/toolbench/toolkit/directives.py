"""Tool directive scanner.

Recognizes exactly two case-sensitive markers in model output::

    [RUN_COMMAND <command>]
    [SEARCH: <query>]

The well-formed marker at the lowest offset wins and at most one
directive is extracted per reply. The argument runs to the bracket that
closes the marker; nested bracket pairs inside the argument are kept, so
``[RUN_COMMAND [ -f x ] && echo y]`` yields ``[ -f x ] && echo y``.

A marker with no closing bracket or an empty argument is plain text.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from toolbench.toolkit.models import RunCommand, Search, ToolKind

if TYPE_CHECKING:
    from toolbench.models.message import AgentReply
    from toolbench.toolkit.models import ToolDirective

RUN_COMMAND_MARKER = "[RUN_COMMAND"
SEARCH_MARKER = "[SEARCH:"

ALL_KINDS: frozenset[ToolKind] = frozenset(ToolKind)

# (marker, kind, marker must be followed by whitespace)
_MARKERS: tuple[tuple[str, ToolKind, bool], ...] = (
    (RUN_COMMAND_MARKER, ToolKind.RUN_COMMAND, True),
    (SEARCH_MARKER, ToolKind.SEARCH, False),
)


def _closing_bracket(text: str, start: int) -> int | None:
    """Index of the ``]`` closing a marker whose argument starts at *start*."""
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == "[":
            depth += 1
        elif char == "]":
            if depth == 0:
                return index
            depth -= 1
    return None


def _directive_at(
    text: str, offset: int, kinds: frozenset[ToolKind]
) -> ToolDirective | None:
    for marker, kind, needs_space in _MARKERS:
        if kind not in kinds or not text.startswith(marker, offset):
            continue
        arg_start = offset + len(marker)
        if needs_space and (arg_start >= len(text) or not text[arg_start].isspace()):
            return None
        end = _closing_bracket(text, arg_start)
        if end is None:
            return None
        argument = text[arg_start:end].strip()
        if not argument:
            return None
        if kind is ToolKind.RUN_COMMAND:
            return RunCommand(command=argument)
        return Search(query=argument)
    return None


def parse_directive(
    reply: AgentReply | str,
    *,
    kinds: Iterable[ToolKind] | None = None,
) -> ToolDirective | None:
    """Extract the first tool directive from a reply.

    Args:
        reply: An AgentReply or raw reply text.
        kinds: Directive kinds to recognize. Defaults to both. Markers of
            other kinds are treated as plain text.

    Returns:
        The first well-formed directive, or None.
    """
    text = reply if isinstance(reply, str) else reply.text
    enabled = ALL_KINDS if kinds is None else frozenset(kinds)
    if not enabled:
        return None

    offset = text.find("[")
    while offset != -1:
        directive = _directive_at(text, offset, enabled)
        if directive is not None:
            return directive
        offset = text.find("[", offset + 1)
    return None

"""Tool directives and their execution.

Exactly two tools exist: shell commands (``[RUN_COMMAND ...]``) and web
search (``[SEARCH: ...]``).
"""

from toolbench.toolkit.directives import (
    ALL_KINDS,
    RUN_COMMAND_MARKER,
    SEARCH_MARKER,
    parse_directive,
)
from toolbench.toolkit.executor import ToolExecutor, truncate_output
from toolbench.toolkit.models import (
    RunCommand,
    Search,
    ToolDirective,
    ToolKind,
    ToolResult,
    directive_from_parts,
)
from toolbench.toolkit.search import WebSearch, extract_snippets

__all__ = [
    "ALL_KINDS",
    "RUN_COMMAND_MARKER",
    "SEARCH_MARKER",
    "parse_directive",
    "ToolExecutor",
    "truncate_output",
    "RunCommand",
    "Search",
    "ToolDirective",
    "ToolKind",
    "ToolResult",
    "directive_from_parts",
    "WebSearch",
    "extract_snippets",
]

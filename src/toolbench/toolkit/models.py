"""Toolkit data models: directives and tool results.

Frozen dataclasses for the two tool directives a model can issue and
the structured result of running one.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union


class ToolKind(str, enum.Enum):
    """The two supported tool kinds."""

    RUN_COMMAND = "run_command"
    SEARCH = "search"


@dataclass(frozen=True)
class RunCommand:
    """Directive asking for a shell command to be run.

    Attributes:
        command: Command text exactly as the model wrote it (trimmed).
    """

    command: str

    @property
    def kind(self) -> ToolKind:
        return ToolKind.RUN_COMMAND

    @property
    def argument(self) -> str:
        return self.command

    def to_marker(self) -> str:
        """Render back into the directive syntax."""
        return f"[RUN_COMMAND {self.command}]"


@dataclass(frozen=True)
class Search:
    """Directive asking for a web search.

    Attributes:
        query: Search query exactly as the model wrote it (trimmed).
    """

    query: str

    @property
    def kind(self) -> ToolKind:
        return ToolKind.SEARCH

    @property
    def argument(self) -> str:
        return self.query

    def to_marker(self) -> str:
        """Render back into the directive syntax."""
        return f"[SEARCH: {self.query}]"


ToolDirective = Union[RunCommand, Search]


def directive_from_parts(kind: ToolKind | str, argument: str) -> ToolDirective:
    """Rebuild a directive from its stored kind and argument."""
    kind = ToolKind(kind)
    if kind is ToolKind.RUN_COMMAND:
        return RunCommand(command=argument)
    return Search(query=argument)


@dataclass(frozen=True)
class ToolResult:
    """Structured result from executing a tool.

    Attributes:
        kind: Kind of the directive that was executed.
        success: Whether execution succeeded.
        output: Captured output, bounded by the executor's output limit.
        error: Error description on failure.
        exit_code: Process exit code (commands only; None on timeout or
            spawn failure).
        truncated: Whether output was cut at the output limit.
        duration_s: Wall-clock execution time in seconds.
    """

    kind: ToolKind
    success: bool
    output: str = ""
    error: str = ""
    exit_code: int | None = None
    truncated: bool = False
    duration_s: float = 0.0

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "success": self.success,
            "output": self.output,
            "error": self.error,
            "exit_code": self.exit_code,
            "truncated": self.truncated,
            "duration_s": self.duration_s,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ToolResult:
        return cls(
            kind=ToolKind(data["kind"]),
            success=bool(data["success"]),
            output=data.get("output", ""),
            error=data.get("error", ""),
            exit_code=data.get("exit_code"),
            truncated=bool(data.get("truncated", False)),
            duration_s=float(data.get("duration_s", 0.0)),
        )

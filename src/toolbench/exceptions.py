"""Toolbench exception hierarchy.

All toolbench-specific exceptions inherit from BenchError.
Provider errors live in toolbench.llm.errors.
"""


class BenchError(Exception):
    """Base exception for all toolbench errors."""


class ConfigError(BenchError):
    """Missing or invalid configuration.

    Fatal to session start: nothing can be benchmarked without a usable
    provider configuration.
    """


class ConversationError(BenchError):
    """Raised when an append would break conversation ordering rules.

    A tool message must directly follow the assistant message whose
    directive produced it.
    """


class ToolError(BenchError):
    """Raised inside the tool executor when a tool cannot run.

    Never escapes ToolExecutor.execute(); it is converted into a failed
    ToolResult so the model gets to see the failure.
    """


class StoreError(BenchError):
    """Raised when the session store cannot read or write."""


class SessionNotFoundError(StoreError):
    """Raised when a session id lookup fails."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")

"""Conversation loop configuration types.

Provides LoopState, TurnStatus and LoopConfig for configuring the
benchmarking conversation loop.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from toolbench.toolkit.models import ToolDirective, ToolResult


class LoopState(str, enum.Enum):
    """States of one benchmarking turn.

    AWAITING_USER_PROMPT -> ADAPTER_CALL -> PARSING_REPLY
    -> [TOOL_EXECUTION -> FOLLOWUP_ADAPTER_CALL] -> TURN_COMPLETE
    -> AWAITING_USER_PROMPT
    """

    AWAITING_USER_PROMPT = "awaiting_user_prompt"
    ADAPTER_CALL = "adapter_call"
    PARSING_REPLY = "parsing_reply"
    TOOL_EXECUTION = "tool_execution"
    FOLLOWUP_ADAPTER_CALL = "followup_adapter_call"
    TURN_COMPLETE = "turn_complete"


class TurnStatus(str, enum.Enum):
    """How a turn ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass
class LoopConfig:
    """Configuration for the conversation loop.

    Mutable dataclass -- callers may adjust settings between turns.

    Attributes:
        tools_enabled: Parse and execute directives. When False every
            reply is final and the system prompt does not mention tools.
        search_enabled: Recognize ``[SEARCH: ...]``. When False search
            markers are plain text.
        system_prompt: Override for the generated system prompt.
        max_attempts: Provider call attempts per step (1 = no retry).
            Only network errors and HTTP 429/5xx are retried.
        retry_backoff: Multiplier for exponential backoff between
            attempts, in seconds.
        on_state: Called on every state transition.
        on_tool_call: Called before a directive is executed.
        on_tool_result: Called after a directive was executed.
    """

    tools_enabled: bool = True
    search_enabled: bool = True
    system_prompt: str | None = None
    max_attempts: int = 1
    retry_backoff: float = 1.0
    on_state: Callable[[LoopState], None] | None = None
    on_tool_call: Callable[[ToolDirective], None] | None = None
    on_tool_result: Callable[[ToolDirective, ToolResult], None] | None = None

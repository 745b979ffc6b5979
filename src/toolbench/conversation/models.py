"""Conversation loop result models.

Provides TurnResult for a single turn and BenchmarkResult for one
provider's answer in a multi-provider benchmark.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from toolbench.conversation.config import TurnStatus

if TYPE_CHECKING:
    from toolbench.models.message import AgentReply, Message
    from toolbench.toolkit.models import ToolDirective, ToolResult


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one turn.

    Frozen: turn results are immutable records of what happened.

    Attributes:
        status: How the turn ended.
        prompt: The user prompt.
        messages: Messages appended to the conversation (empty unless
            COMPLETED).
        reply: First provider reply, if one arrived.
        directive: Directive parsed from the first reply.
        tool_result: Result of executing the directive.
        final_reply: Follow-up reply after the tool round-trip.
        error: The provider error that failed the turn.
        stored: Whether the turn reached the session store.
    """

    status: TurnStatus
    prompt: str
    messages: tuple[Message, ...] = ()
    reply: AgentReply | None = None
    directive: ToolDirective | None = None
    tool_result: ToolResult | None = None
    final_reply: AgentReply | None = None
    error: Exception | None = None
    stored: bool = False

    @property
    def completed(self) -> bool:
        return self.status is TurnStatus.COMPLETED

    @property
    def final_text(self) -> str:
        """Text of the answer the user sees."""
        if self.final_reply is not None:
            return self.final_reply.text
        if self.reply is not None:
            return self.reply.text
        return ""

    @property
    def used_tool(self) -> bool:
        return self.tool_result is not None


@dataclass(frozen=True)
class BenchmarkResult:
    """One provider's outcome for a benchmark prompt."""

    provider: str
    model: str
    session_id: str | None
    turn: TurnResult | None = None
    error: str = ""

    @property
    def completed(self) -> bool:
        return self.turn is not None and self.turn.completed

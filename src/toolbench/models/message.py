"""Conversation models.

Provides:
- Role: message roles understood by every provider adapter
- Message: one immutable conversation entry
- Conversation: append-only, ordered message sequence
- AgentReply: normalized reply from any provider
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from toolbench.exceptions import ConversationError

if TYPE_CHECKING:
    from toolbench.toolkit.models import ToolDirective, ToolResult


class Role(str, enum.Enum):
    """Conversation roles.

    SYSTEM is the seed message carrying the system prompt. TOOL carries
    the result of a directive issued by the preceding assistant message.
    """

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class Message:
    """A single conversation message.

    ``position`` is None until the message is appended to a Conversation,
    which assigns its ordinal.

    Attributes:
        role: Who produced the message.
        content: Text content.
        position: Ordinal within the conversation (0-based).
        directive: For assistant messages, the directive parsed from
            the text (if any).
        tool_result: For tool messages, the structured result.
        metadata: Free-form extras (latency, token usage, ...).
    """

    role: Role
    content: str
    position: int | None = None
    directive: ToolDirective | None = None
    tool_result: ToolResult | None = None
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)


def _check_follows(previous: Message | None, message: Message) -> None:
    """Validate that *message* may directly follow *previous*."""
    if message.role is not Role.TOOL:
        return
    if previous is None or previous.role is not Role.ASSISTANT:
        raise ConversationError(
            "A tool message must directly follow an assistant message"
        )
    if previous.directive is None:
        raise ConversationError(
            "A tool message must follow an assistant message that issued a directive"
        )
    if (
        message.tool_result is not None
        and message.tool_result.kind != previous.directive.kind
    ):
        raise ConversationError(
            f"Tool result kind '{message.tool_result.kind.value}' does not match "
            f"directive kind '{previous.directive.kind.value}'"
        )


class Conversation:
    """Append-only ordered sequence of messages.

    Messages receive their position on append and are never reordered,
    removed, or replaced afterwards.

    Usage::

        convo = Conversation([Message.system("You are helpful.")])
        convo.append(Message.user("Hi"))
        len(convo)  # 2
    """

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        self._messages: list[Message] = []
        self.extend(messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def __repr__(self) -> str:
        return f"Conversation({len(self._messages)} messages)"

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the current messages."""
        return tuple(self._messages)

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def append(self, message: Message) -> Message:
        """Append one message and return it with its position assigned.

        Raises:
            ConversationError: If the message breaks tool ordering.
        """
        _check_follows(self.last, message)
        positioned = replace(message, position=len(self._messages))
        self._messages.append(positioned)
        return positioned

    def extend(self, messages: Iterable[Message]) -> list[Message]:
        """Append several messages atomically.

        The whole batch is validated before anything is appended, so a
        rejected batch leaves the conversation untouched.

        Raises:
            ConversationError: If any message breaks tool ordering.
        """
        batch = list(messages)
        previous = self.last
        for message in batch:
            _check_follows(previous, message)
            previous = message
        return [self.append(m) for m in batch]

    def preview(self, staged: Sequence[Message]) -> tuple[Message, ...]:
        """Return the history as it would look with *staged* appended.

        Does not modify the conversation.

        Raises:
            ConversationError: If the staged messages break tool ordering.
        """
        previous = self.last
        for message in staged:
            _check_follows(previous, message)
            previous = message
        return self.messages + tuple(staged)


@dataclass(frozen=True)
class AgentReply:
    """Normalized reply from a provider call.

    Attributes:
        text: Flat reply text.
        directive: Tool directive extracted from the text, if any.
        provider: Provider identifier that produced the reply.
        model: Model name used for the call.
        latency_s: Round-trip time of the HTTP call.
        usage: Token usage reported by the provider, if any.
    """

    text: str
    directive: ToolDirective | None = None
    provider: str = ""
    model: str = ""
    latency_s: float = 0.0
    usage: dict[str, Any] | None = field(default=None, compare=False)

    def with_directive(self, directive: ToolDirective | None) -> AgentReply:
        return replace(self, directive=directive)

    def to_message(self) -> Message:
        """Build the assistant message recording this reply."""
        metadata: dict[str, Any] = {
            "provider": self.provider,
            "model": self.model,
            "latency_s": round(self.latency_s, 4),
        }
        if self.usage:
            metadata["usage"] = self.usage
        return Message(
            role=Role.ASSISTANT,
            content=self.text,
            directive=self.directive,
            metadata=metadata,
        )

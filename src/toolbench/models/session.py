"""Session models.

Provides:
- Session: a benchmarking conversation with one provider
- SessionSummary: frozen listing row for stored sessions
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from toolbench.models.message import Conversation


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class Session:
    """A full benchmarking conversation with one provider.

    The conversation is append-only; ``ended_at`` is set when the user
    exits or the run context closes.
    """

    id: str
    provider: str
    model: str
    conversation: Conversation = field(default_factory=Conversation)
    created_at: datetime = field(default_factory=utcnow)
    ended_at: datetime | None = None

    @property
    def ended(self) -> bool:
        return self.ended_at is not None


@dataclass(frozen=True)
class SessionSummary:
    """Immutable listing entry for a stored session."""

    id: str
    provider: str
    model: str
    created_at: datetime
    ended_at: datetime | None
    message_count: int
    failure_count: int = 0

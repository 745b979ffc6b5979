"""Abstract repository interfaces for toolbench storage.

Defines ABC interfaces for all database operations. No SQLAlchemy
imports here -- pure abstract contracts.

Concrete implementations are in sqlite.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from datetime import datetime

    from toolbench.storage.schema import MessageRow, SessionRow, TurnFailureRow


class SessionRepository(ABC):
    """Abstract interface for session rows."""

    @abstractmethod
    def get(self, session_id: str) -> SessionRow | None:
        """Get a session by id. Returns None if not found."""
        ...

    @abstractmethod
    def save(self, row: SessionRow) -> None:
        """Insert a new session."""
        ...

    @abstractmethod
    def list_all(self) -> Sequence[SessionRow]:
        """All sessions, newest first."""
        ...

    @abstractmethod
    def mark_ended(self, session_id: str, ended_at: datetime) -> bool:
        """Set ended_at if not already set. Returns False if unknown id."""
        ...


class MessageRepository(ABC):
    """Abstract interface for append-only message rows."""

    @abstractmethod
    def append(self, rows: Sequence[MessageRow]) -> None:
        """Insert message rows."""
        ...

    @abstractmethod
    def get_for_session(self, session_id: str) -> Sequence[MessageRow]:
        """All messages of a session, ordered by position."""
        ...

    @abstractmethod
    def next_turn_index(self, session_id: str) -> int:
        """Turn index to use for the next append (0 for an empty session)."""
        ...

    @abstractmethod
    def next_position(self, session_id: str) -> int:
        """Position following the last stored message."""
        ...

    @abstractmethod
    def count_by_session(self) -> dict[str, int]:
        """Message count per session id."""
        ...


class TurnFailureRepository(ABC):
    """Abstract interface for failed-turn records."""

    @abstractmethod
    def save(self, row: TurnFailureRow) -> None:
        """Insert a failure record."""
        ...

    @abstractmethod
    def get_for_session(self, session_id: str) -> Sequence[TurnFailureRow]:
        """Failures of a session, oldest first."""
        ...

    @abstractmethod
    def count_by_session(self) -> dict[str, int]:
        """Failure count per session id."""
        ...

"""SQLite implementations of repository interfaces.

All repositories use SQLAlchemy 2.0-style queries (select() + session.execute()).
Each repository takes a Session in its constructor.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from toolbench.storage.repositories import (
    MessageRepository,
    SessionRepository,
    TurnFailureRepository,
)
from toolbench.storage.schema import MessageRow, SessionRow, TurnFailureRow


class SqliteSessionRepository(SessionRepository):
    """SQLite implementation of session repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, session_id: str) -> SessionRow | None:
        stmt = select(SessionRow).where(SessionRow.id == session_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def save(self, row: SessionRow) -> None:
        self._session.add(row)
        self._session.flush()

    def list_all(self) -> Sequence[SessionRow]:
        stmt = select(SessionRow).order_by(SessionRow.created_at.desc(), SessionRow.id)
        return list(self._session.execute(stmt).scalars().all())

    def mark_ended(self, session_id: str, ended_at: datetime) -> bool:
        row = self.get(session_id)
        if row is None:
            return False
        if row.ended_at is None:
            row.ended_at = ended_at
            self._session.flush()
        return True


class SqliteMessageRepository(MessageRepository):
    """SQLite implementation of message repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def append(self, rows: Sequence[MessageRow]) -> None:
        self._session.add_all(rows)
        self._session.flush()

    def get_for_session(self, session_id: str) -> Sequence[MessageRow]:
        stmt = (
            select(MessageRow)
            .where(MessageRow.session_id == session_id)
            .order_by(MessageRow.position)
        )
        return list(self._session.execute(stmt).scalars().all())

    def next_turn_index(self, session_id: str) -> int:
        stmt = select(func.max(MessageRow.turn_index)).where(
            MessageRow.session_id == session_id
        )
        current = self._session.execute(stmt).scalar_one_or_none()
        return 0 if current is None else current + 1

    def next_position(self, session_id: str) -> int:
        stmt = select(func.max(MessageRow.position)).where(
            MessageRow.session_id == session_id
        )
        current = self._session.execute(stmt).scalar_one_or_none()
        return 0 if current is None else current + 1

    def count_by_session(self) -> dict[str, int]:
        stmt = select(MessageRow.session_id, func.count()).group_by(MessageRow.session_id)
        return {sid: count for sid, count in self._session.execute(stmt).all()}


class SqliteTurnFailureRepository(TurnFailureRepository):
    """SQLite implementation of failed-turn repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def save(self, row: TurnFailureRow) -> None:
        self._session.add(row)
        self._session.flush()

    def get_for_session(self, session_id: str) -> Sequence[TurnFailureRow]:
        stmt = (
            select(TurnFailureRow)
            .where(TurnFailureRow.session_id == session_id)
            .order_by(TurnFailureRow.id)
        )
        return list(self._session.execute(stmt).scalars().all())

    def count_by_session(self) -> dict[str, int]:
        stmt = select(TurnFailureRow.session_id, func.count()).group_by(
            TurnFailureRow.session_id
        )
        return {sid: count for sid, count in self._session.execute(stmt).all()}

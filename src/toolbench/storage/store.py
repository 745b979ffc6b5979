"""SessionStore: persistence facade used by the conversation loop and CLI.

Every public method opens its own short ORM session, so independent
sessions may be written from different threads. Writes to one session id
are serialized by a per-session lock. All SQLAlchemy failures surface as
StoreError.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from toolbench.exceptions import SessionNotFoundError, StoreError
from toolbench.models.message import Conversation, Message
from toolbench.models.session import Session, SessionSummary, utcnow
from toolbench.storage.engine import create_bench_engine, create_session_factory, init_db
from toolbench.storage.schema import MessageRow, SessionRow, TurnFailureRow
from toolbench.storage.sqlite import (
    SqliteMessageRepository,
    SqliteSessionRepository,
    SqliteTurnFailureRepository,
)
from toolbench.toolkit.models import ToolResult, directive_from_parts

if TYPE_CHECKING:
    from sqlalchemy import Engine
    from sqlalchemy.orm import Session as OrmSession

logger = logging.getLogger(__name__)


def _message_to_row(
    session_id: str, turn_index: int, position: int, message: Message, now: datetime
) -> MessageRow:
    return MessageRow(
        session_id=session_id,
        turn_index=turn_index,
        position=position,
        role=message.role,
        content=message.content,
        directive_kind=message.directive.kind.value if message.directive else None,
        directive_argument=message.directive.argument if message.directive else None,
        tool_result_json=message.tool_result.to_dict() if message.tool_result else None,
        metadata_json=dict(message.metadata) or None,
        created_at=now,
    )


def _row_to_message(row: MessageRow) -> Message:
    directive = None
    if row.directive_kind and row.directive_argument is not None:
        directive = directive_from_parts(row.directive_kind, row.directive_argument)
    tool_result = ToolResult.from_dict(row.tool_result_json) if row.tool_result_json else None
    return Message(
        role=row.role,
        content=row.content,
        position=row.position,
        directive=directive,
        tool_result=tool_result,
        metadata=dict(row.metadata_json or {}),
    )


class SessionStore:
    """SQLite-backed store for benchmarking sessions.

    Usage::

        with SessionStore.open("chat_sessions.db") as store:
            sid = store.create_session("openai", model="gpt-4-turbo")
            store.append_turn(sid, Message.user("hi"), reply_message)
            print(store.export_session(sid))
    """

    def __init__(self, engine: Engine, *, owns_engine: bool = False) -> None:
        self._engine = engine
        self._owns_engine = owns_engine
        self._session_factory = create_session_factory(engine)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        # A StaticPool engine shares one connection; serialize all writes.
        self._shared_lock = threading.Lock() if engine.url.database in (None, "", ":memory:") else None

    @classmethod
    def open(cls, db_path: str = ":memory:", *, url: str | None = None) -> SessionStore:
        """Open (and initialize if needed) a store.

        Raises:
            StoreError: If the database cannot be created or opened.
        """
        try:
            engine = create_bench_engine(db_path, url=url)
            init_db(engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"Cannot open session store at {url or db_path}: {exc}") from exc
        return cls(engine, owns_engine=True)

    @property
    def engine(self) -> Engine:
        return self._engine

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _unit(self) -> Iterator[OrmSession]:
        """Yield an ORM session; commit on success, rollback on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(f"Session store error: {exc}") from exc
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    def _writer_lock(self, session_id: str) -> threading.Lock:
        if self._shared_lock is not None:
            return self._shared_lock
        with self._locks_guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = self._locks[session_id] = threading.Lock()
            return lock

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_session(
        self,
        provider: str,
        *,
        model: str = "",
        session_id: str | None = None,
        created_at: datetime | None = None,
    ) -> str:
        """Create a session row and return its id.

        Raises:
            StoreError: On database failure (including a duplicate id).
        """
        session_id = session_id or str(uuid.uuid4())
        with self._writer_lock(session_id), self._unit() as s:
            SqliteSessionRepository(s).save(
                SessionRow(
                    id=session_id,
                    provider=provider,
                    model=model,
                    created_at=created_at or utcnow(),
                )
            )
        logger.debug("Created session %s (%s)", session_id, provider)
        return session_id

    def append_turn(self, session_id: str, *messages: Message) -> None:
        """Append one turn's messages to a session atomically.

        Messages keep their conversation position when they have one;
        otherwise they are placed after the last stored message.

        Raises:
            SessionNotFoundError: If the session does not exist.
            StoreError: On database failure. Nothing is written.
        """
        if not messages:
            return
        with self._writer_lock(session_id), self._unit() as s:
            if SqliteSessionRepository(s).get(session_id) is None:
                raise SessionNotFoundError(session_id)
            repo = SqliteMessageRepository(s)
            turn_index = repo.next_turn_index(session_id)
            next_position = repo.next_position(session_id)
            now = utcnow()
            rows: list[MessageRow] = []
            for message in messages:
                position = message.position if message.position is not None else next_position
                rows.append(_message_to_row(session_id, turn_index, position, message, now))
                next_position = position + 1
            repo.append(rows)

    def record_failure(self, session_id: str, prompt: str, error: BaseException | str) -> None:
        """Record a turn that failed with a provider error.

        Raises:
            StoreError: On database failure.
        """
        if isinstance(error, BaseException):
            error_type, error_message = type(error).__name__, str(error)
        else:
            error_type, error_message = "Error", error
        with self._writer_lock(session_id), self._unit() as s:
            SqliteTurnFailureRepository(s).save(
                TurnFailureRow(
                    session_id=session_id,
                    prompt=prompt,
                    error_type=error_type,
                    error_message=error_message,
                    created_at=utcnow(),
                )
            )

    def end_session(self, session_id: str) -> None:
        """Mark a session as ended. Ending twice keeps the first timestamp.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        with self._writer_lock(session_id), self._unit() as s:
            if not SqliteSessionRepository(s).mark_ended(session_id, utcnow()):
                raise SessionNotFoundError(session_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_sessions(self) -> list[SessionSummary]:
        """All stored sessions, newest first."""
        with self._unit() as s:
            rows = SqliteSessionRepository(s).list_all()
            message_counts = SqliteMessageRepository(s).count_by_session()
            failure_counts = SqliteTurnFailureRepository(s).count_by_session()
            return [
                SessionSummary(
                    id=row.id,
                    provider=row.provider,
                    model=row.model,
                    created_at=row.created_at,
                    ended_at=row.ended_at,
                    message_count=message_counts.get(row.id, 0),
                    failure_count=failure_counts.get(row.id, 0),
                )
                for row in rows
            ]

    def load_history(self, session_id: str) -> list[Message]:
        """Stored messages of a session, in conversation order.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        return list(self.load_session(session_id).conversation)

    def load_session(self, session_id: str) -> Session:
        """Rebuild a Session, conversation included.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        with self._unit() as s:
            row = SqliteSessionRepository(s).get(session_id)
            if row is None:
                raise SessionNotFoundError(session_id)
            messages = [_row_to_message(m) for m in SqliteMessageRepository(s).get_for_session(session_id)]
            return Session(
                id=row.id,
                provider=row.provider,
                model=row.model,
                conversation=Conversation(messages),
                created_at=row.created_at,
                ended_at=row.ended_at,
            )

    def load_failures(self, session_id: str) -> list[TurnFailureRow]:
        """Failed-turn records of a session, oldest first."""
        with self._unit() as s:
            return list(SqliteTurnFailureRepository(s).get_for_session(session_id))

    def export_session(self, session_id: str) -> str:
        """Render a session's history as ``role: content`` lines.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        return "".join(
            f"{m.role.value}: {m.content}\n" for m in self.load_history(session_id)
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Dispose the engine if this store created it."""
        if self._owns_engine:
            self._engine.dispose()

    def __enter__(self) -> SessionStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

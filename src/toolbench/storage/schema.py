"""SQLAlchemy ORM schema for toolbench.

Defines all database tables: sessions, messages, turn_failures, _bench_meta.

The Role enum is imported from the domain models, not redefined here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from toolbench.models.message import Role


class Base(DeclarativeBase):
    """Base class for all toolbench ORM models."""

    pass


class BenchMetaRow(Base):
    """Key/value metadata (schema version)."""

    __tablename__ = "_bench_meta"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)


class SessionRow(Base):
    """One benchmarking session with one provider."""

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    provider: Mapped[str] = mapped_column(String(30), nullable=False)
    model: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_sessions_created", "created_at"),
    )


class MessageRow(Base):
    """A stored conversation message.

    Append-only. ``turn_index`` groups the messages written by one
    append_turn call; ``position`` is the message's ordinal in the
    session's conversation.
    """

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("sessions.id"),
        nullable=False,
    )
    turn_index: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    role: Mapped[Role] = mapped_column(nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    directive_kind: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    directive_argument: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tool_result_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    metadata_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_messages_session_position", "session_id", "position", unique=True),
        Index("ix_messages_session_turn", "session_id", "turn_index"),
    )


class TurnFailureRow(Base):
    """A turn that ended with a provider error.

    Kept so a benchmark records how a provider failed, not only that it
    failed. Failed turns never reach the messages table.
    """

    __tablename__ = "turn_failures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("sessions.id"),
        nullable=False,
        index=True,
    )
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    error_type: Mapped[str] = mapped_column(String(100), nullable=False)
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

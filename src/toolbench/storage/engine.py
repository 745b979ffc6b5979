"""Engine and session factory for toolbench storage.

Provides SQLite engine creation with performance pragmas,
session factory creation, and database initialization.
"""

from __future__ import annotations

from sqlalchemy import Engine, create_engine, event, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from toolbench.storage.schema import Base, BenchMetaRow

SCHEMA_VERSION = "1"


def create_bench_engine(
    db_path: str = ":memory:",
    *,
    url: str | None = None,
) -> Engine:
    """Create a SQLAlchemy engine for toolbench storage.

    Supports two modes:

    1. **SQLite shorthand** (default): pass a file path or ``":memory:"``.
    2. **Full URL**: pass any SQLAlchemy connection URL via *url=*.

    In-memory databases use a single shared connection so every thread
    sees the same data. SQLite pragmas (WAL, busy_timeout, foreign keys)
    are applied automatically when the engine dialect is SQLite.

    Args:
        db_path: Path to SQLite database file, or ``":memory:"``.
            Ignored when *url* is provided.
        url: Full SQLAlchemy database URL.

    Returns:
        Configured SQLAlchemy Engine.
    """
    if url is not None:
        engine = create_engine(url, echo=False)
    elif db_path == ":memory:":
        engine = create_engine(
            "sqlite://",
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_engine(f"sqlite:///{db_path}", echo=False)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):  # type: ignore[no-untyped-def]
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to the given engine.

    Uses expire_on_commit=False to prevent lazy-load issues
    when accessing attributes after commit.
    """
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables and record the schema version.

    Idempotent: existing tables and an existing version row are kept.
    """
    Base.metadata.create_all(engine)

    SessionLocal = create_session_factory(engine)
    with SessionLocal() as session:
        existing = session.execute(
            select(BenchMetaRow).where(BenchMetaRow.key == "schema_version")
        ).scalar_one_or_none()
        if existing is None:
            session.add(BenchMetaRow(key="schema_version", value=SCHEMA_VERSION))
            session.commit()

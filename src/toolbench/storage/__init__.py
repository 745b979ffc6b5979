"""SQLite persistence for benchmarking sessions."""

from toolbench.storage.engine import create_bench_engine, create_session_factory, init_db
from toolbench.storage.store import SessionStore

__all__ = [
    "create_bench_engine",
    "create_session_factory",
    "init_db",
    "SessionStore",
]

"""
SQLite dialect configuration (default)
"""

from typing import Dict, Any
from pathlib import Path
import os
from sqlalchemy import Engine, event
from sqlalchemy.pool import StaticPool

from tinytask.core.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_BUSY_TIMEOUT_MS = 30000

# Execution option marking a connection that only reads; its transaction
# starts deferred instead of taking the write lock up front
READ_ONLY_OPTION = "tinytask_read_only"


def get_busy_timeout_ms() -> int:
    """
    Get SQLite busy timeout in milliseconds

    Returns:
        Busy timeout from TINYTASK_BUSY_TIMEOUT_MS (default: 30000)
    """
    timeout = os.getenv("TINYTASK_BUSY_TIMEOUT_MS", str(DEFAULT_BUSY_TIMEOUT_MS))
    try:
        value = int(timeout)
        if value < 0:
            raise ValueError(timeout)
        return value
    except ValueError:
        logger.warning(
            f"Invalid TINYTASK_BUSY_TIMEOUT_MS value: {timeout}, using default {DEFAULT_BUSY_TIMEOUT_MS}"
        )
        return DEFAULT_BUSY_TIMEOUT_MS


def is_memory_path(path: str) -> bool:
    return path in ("", ":memory:")


class SQLiteDialect:
    """SQLite dialect configuration (default)"""

    @staticmethod
    def get_connection_string(path: str = ":memory:") -> str:
        """
        Generate SQLite connection string

        Args:
            path: Database file path, ":memory:" for in-memory database
        """
        if is_memory_path(path):
            return "sqlite:///:memory:"
        abs_path = Path(path).absolute()
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{abs_path}"

    @staticmethod
    def get_engine_kwargs(path: str = ":memory:") -> Dict[str, Any]:
        """SQLite specific engine parameters"""
        timeout_seconds = get_busy_timeout_ms() / 1000.0
        if is_memory_path(path):
            # Every new connection would open a fresh empty database,
            # so all callers share the one connection
            return {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False, "timeout": timeout_seconds},
            }
        return {
            "pool_pre_ping": True,
            "connect_args": {"check_same_thread": False, "timeout": timeout_seconds},
        }

    @staticmethod
    def configure_engine(engine: Engine) -> None:
        """
        Install connection pragmas and explicit transaction control

        pysqlite's own BEGIN handling is switched off so that SQLAlchemy's
        begin() maps to BEGIN IMMEDIATE: the write lock is taken when the unit
        of work starts and released at COMMIT/ROLLBACK, so a check-then-write
        sequence cannot interleave with another writer.
        """
        memory = is_memory_path(engine.url.database or "")
        busy_timeout = get_busy_timeout_ms()

        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            try:
                if not memory:
                    cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute("PRAGMA synchronous=NORMAL")
                cursor.execute(f"PRAGMA busy_timeout={busy_timeout}")
                cursor.execute("PRAGMA wal_autocheckpoint=1000")
            finally:
                cursor.close()

        @event.listens_for(engine, "begin")
        def _on_begin(conn):
            if conn.get_execution_options().get(READ_ONLY_OPTION):
                conn.exec_driver_sql("BEGIN")
            else:
                conn.exec_driver_sql("BEGIN IMMEDIATE")

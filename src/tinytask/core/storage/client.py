"""
Database client wrapping a SQLAlchemy engine

DatabaseClient is the store adapter the services are built on. It executes
SQLAlchemy Core statements, hands rows back as plain dicts and provides a
scoped all-or-nothing block (transaction) that the services open once per
public operation.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, TypeVar, Union
from sqlalchemy import Engine
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import Executable

from tinytask.core.errors import StorageError
from tinytask.core.storage.dialects.sqlite import READ_ONLY_OPTION
from tinytask.core.storage.sqlalchemy.models import Base
from tinytask.core.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Params = Optional[Union[Mapping[str, Any], List[Mapping[str, Any]]]]


@dataclass(frozen=True)
class ExecuteResult:
    """Outcome of a write statement"""
    generated_id: Optional[int]
    rows_affected: int


class DatabaseClient:
    """
    Store adapter over a SQLAlchemy Engine

    Statements issued inside transaction() run on the transaction's connection;
    statements issued outside it get a short-lived connection of their own
    (reads) or a one-statement transaction (writes). Nested transaction()
    blocks join the outermost one, which alone decides commit or rollback.

    An engine on a StaticPool hands every caller the same DBAPI connection, so
    top-level transactions and reads on it are serialized by a client lock.

    Example:
        client = DatabaseClient(engine)
        client.initialize()
        with client.transaction():
            result = client.execute(insert(tasks_table).values(...))
            row = client.query_one(select(tasks_table).where(...))
    """

    def __init__(self, engine: Engine):
        self._engine = engine
        self._initialized = False
        self._closed = False
        self._current: ContextVar[Optional[Connection]] = ContextVar(
            f"tinytask_transaction_{id(self)}", default=None
        )
        self._lock = RLock()
        self._shared_connection = isinstance(engine.pool, StaticPool)

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    def initialize(self) -> None:
        """Create tables if missing (idempotent)"""
        if self._initialized:
            return
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            logger.error(f"Error creating schema: {str(e)}")
            raise StorageError(f"Schema initialization failed: {e}") from e
        self._initialized = True
        logger.debug(f"Schema ready on {self.dialect_name} database")

    @property
    def in_transaction(self) -> bool:
        return self._current.get() is not None

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """
        Scoped all-or-nothing block

        Commits when the block exits normally, rolls back when it raises, and
        returns the connection to the pool either way.

        Yields:
            The transaction's connection
        """
        outer = self._current.get()
        if outer is not None:
            yield outer
            return

        with self._exclusive():
            try:
                with self._engine.begin() as conn:
                    token = self._current.set(conn)
                    try:
                        yield conn
                    finally:
                        self._current.reset(token)
            except SQLAlchemyError as e:
                logger.error(f"Transaction failed: {str(e)}")
                raise StorageError(f"Transaction failed: {e}") from e

    def run_in_transaction(self, unit_of_work: Callable[[], T]) -> T:
        """
        Run a callable inside transaction() and return its result

        Args:
            unit_of_work: Zero-argument callable issuing statements via this client

        Returns:
            Whatever unit_of_work returns
        """
        with self.transaction():
            return unit_of_work()

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if not self._shared_connection:
            yield
            return
        with self._lock:
            yield

    @contextmanager
    def _read_connection(self) -> Iterator[Connection]:
        conn = self._current.get()
        if conn is not None:
            yield conn
            return
        with self._exclusive(), self._engine.connect() as conn:
            conn.execution_options(**{READ_ONLY_OPTION: True})
            yield conn

    def query(self, statement: Executable, params: Params = None) -> List[Dict[str, Any]]:
        """
        Execute a query and return all rows

        Returns:
            Rows as dicts, in the statement's order
        """
        try:
            with self._read_connection() as conn:
                result = conn.execute(statement, params)
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            logger.error(f"Query failed: {str(e)}")
            raise StorageError(f"Query failed: {e}") from e

    def query_one(self, statement: Executable, params: Params = None) -> Optional[Dict[str, Any]]:
        """
        Execute a query and return the first row

        Returns:
            Row as dict, or None when nothing matched
        """
        try:
            with self._read_connection() as conn:
                result = conn.execute(statement, params)
                row = result.mappings().first()
                return dict(row) if row is not None else None
        except SQLAlchemyError as e:
            logger.error(f"QueryOne failed: {str(e)}")
            raise StorageError(f"QueryOne failed: {e}") from e

    def execute(self, statement: Executable, params: Params = None) -> ExecuteResult:
        """
        Execute a write operation (INSERT, UPDATE, DELETE)

        Outside transaction() the statement commits on its own.

        Returns:
            ExecuteResult with the generated primary key (inserts) and the
            number of affected rows
        """
        try:
            with self.transaction() as conn:
                result = conn.execute(statement, params)
                generated_id = None
                if result.is_insert:
                    pk = result.inserted_primary_key
                    generated_id = pk[0] if pk else None
                rows_affected = result.rowcount if result.rowcount and result.rowcount > 0 else 0
                return ExecuteResult(generated_id=generated_id, rows_affected=rows_affected)
        except SQLAlchemyError as e:
            logger.error(f"Execute failed: {str(e)}")
            raise StorageError(f"Execute failed: {e}") from e

    def close(self) -> None:
        """Dispose the engine and its pooled connections"""
        if self._closed:
            return
        self._engine.dispose()
        self._closed = True
        logger.debug("DatabaseClient closed")

    def is_open(self) -> bool:
        return not self._closed


__all__ = [
    "DatabaseClient",
    "ExecuteResult",
]

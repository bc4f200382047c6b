"""
Storage module for tinytask

Provides the DatabaseClient store adapter and its factory, with SQLite
(embedded, zero-config) by default and optional PostgreSQL support.
"""

from tinytask.core.storage.client import DatabaseClient, ExecuteResult
from tinytask.core.storage.factory import (
    create_database_client,
    get_default_client,
    set_default_client,
    reset_default_client,
    is_postgresql_url,
    is_sqlite_url,
)

__all__ = [
    "DatabaseClient",
    "ExecuteResult",
    "create_database_client",
    "get_default_client",
    "set_default_client",
    "reset_default_client",
    "is_postgresql_url",
    "is_sqlite_url",
]

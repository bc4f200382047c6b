"""
Database dialect registry
"""

from typing import Any, Dict, Optional, Type, Protocol
from sqlalchemy import Engine

from tinytask.core.storage.dialects.sqlite import SQLiteDialect


# Dialect protocol
class DialectConfig(Protocol):
    """Database dialect configuration interface"""

    @staticmethod
    def get_connection_string(**kwargs) -> str: ...

    @staticmethod
    def get_engine_kwargs(path: Optional[str] = None) -> Dict[str, Any]: ...

    @staticmethod
    def configure_engine(engine: Engine) -> None: ...


# Dialect registry
_DIALECT_REGISTRY: Dict[str, Type] = {}


def register_dialect(name: str, dialect_class: Type):
    """Register database dialect"""
    _DIALECT_REGISTRY[name] = dialect_class


def get_dialect_config(name: str):
    """Get database dialect configuration instance"""
    if name not in _DIALECT_REGISTRY:
        raise ValueError(
            f"Unsupported dialect: {name}. "
            f"Available: {list(_DIALECT_REGISTRY.keys())}"
        )
    return _DIALECT_REGISTRY[name]


def get_available_dialects() -> list:
    """Names of all registered dialects"""
    return list(_DIALECT_REGISTRY.keys())


# Register built-in dialects
register_dialect("sqlite", SQLiteDialect)

# Lazy register PostgreSQL (if the driver is installed)
try:
    import psycopg2  # noqa: F401
    from tinytask.core.storage.dialects.postgres import PostgreSQLDialect
    register_dialect("postgresql", PostgreSQLDialect)
    register_dialect("postgres", PostgreSQLDialect)  # Alias
except ImportError:
    # PostgreSQL driver not installed, skip registration
    pass

"""
PostgreSQL dialect configuration (optional, requires [postgres] extra)
"""

from typing import Dict, Any, Optional
from sqlalchemy import Engine


class PostgreSQLDialect:
    """PostgreSQL dialect configuration (optional, requires [postgres] extra)"""

    @staticmethod
    def get_connection_string(connection_string: str) -> str:
        """
        Generate PostgreSQL connection string

        Args:
            connection_string: PostgreSQL connection string
        """
        return connection_string

    @staticmethod
    def get_engine_kwargs(path: Optional[str] = None) -> Dict[str, Any]:
        """PostgreSQL specific engine parameters"""
        return {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
        }

    @staticmethod
    def configure_engine(engine: Engine) -> None:
        """Nothing to install: READ COMMITTED and row locks come with the server"""
        return None

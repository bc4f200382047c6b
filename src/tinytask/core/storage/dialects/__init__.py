"""
Database dialects for different storage backends
"""

from tinytask.core.storage.dialects.registry import (
    register_dialect,
    get_dialect_config,
    get_available_dialects,
)

__all__ = [
    "register_dialect",
    "get_dialect_config",
    "get_available_dialects",
]

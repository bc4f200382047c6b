"""
SQLAlchemy storage implementation
"""

from tinytask.core.storage.sqlalchemy.models import (
    Base,
    TaskModel,
    CommentModel,
    LinkModel,
    tasks_table,
    comments_table,
    links_table,
)

__all__ = [
    "Base",
    "TaskModel",
    "CommentModel",
    "LinkModel",
    "tasks_table",
    "comments_table",
    "links_table",
]

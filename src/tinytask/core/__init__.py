"""
Core modules

- types.py: domain records and parameter models (Task, Comment, Link, TaskStatus)
- errors.py: error taxonomy (ValidationError, NotFoundError, IntegrityError)
- storage/: DatabaseClient store adapter, dialects, schema
- services/: TaskService, CommentService, LinkService
- utils/: logging and helpers
"""

from tinytask.core.errors import (
    TinyTaskError,
    ValidationError,
    NotFoundError,
    IntegrityError,
    StorageError,
)
from tinytask.core.types import (
    TaskStatus,
    Task,
    TaskWithRelations,
    Comment,
    Link,
    CreateTaskParams,
    TaskUpdate,
    TaskFilters,
    CreateCommentParams,
    CreateLinkParams,
    LinkUpdate,
)
from tinytask.core.storage import (
    DatabaseClient,
    ExecuteResult,
    create_database_client,
    get_default_client,
    set_default_client,
    reset_default_client,
)
from tinytask.core.services import (
    TaskService,
    CommentService,
    LinkService,
    Services,
    create_services,
)

__all__ = [
    # Errors
    "TinyTaskError",
    "ValidationError",
    "NotFoundError",
    "IntegrityError",
    "StorageError",
    # Types
    "TaskStatus",
    "Task",
    "TaskWithRelations",
    "Comment",
    "Link",
    "CreateTaskParams",
    "TaskUpdate",
    "TaskFilters",
    "CreateCommentParams",
    "CreateLinkParams",
    "LinkUpdate",
    # Storage
    "DatabaseClient",
    "ExecuteResult",
    "create_database_client",
    "get_default_client",
    "set_default_client",
    "reset_default_client",
    # Services
    "TaskService",
    "CommentService",
    "LinkService",
    "Services",
    "create_services",
]

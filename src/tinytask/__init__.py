"""
tinytask - minimal task tracking for LLM agents

Tasks, their comments and their reference links in a relational store, with
atomic per-operation transactions and a small agent workflow (queues,
signing up for work, handing tasks over).

Transports (HTTP, MCP, CLI) are built on top of the services exposed here.
"""

__version__ = "0.1.0"

from tinytask.core import (
    TinyTaskError,
    ValidationError,
    NotFoundError,
    IntegrityError,
    StorageError,
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
    DatabaseClient,
    create_database_client,
    get_default_client,
    TaskService,
    CommentService,
    LinkService,
    Services,
    create_services,
)

__all__ = [
    "TinyTaskError",
    "ValidationError",
    "NotFoundError",
    "IntegrityError",
    "StorageError",
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
    "DatabaseClient",
    "create_database_client",
    "get_default_client",
    "TaskService",
    "CommentService",
    "LinkService",
    "Services",
    "create_services",
    "__version__",
]

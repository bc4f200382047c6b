"""
Entity services

Each service receives the DatabaseClient at construction; none of them holds
a transaction open across public calls.
"""

from dataclasses import dataclass
from typing import Optional

from tinytask.core.services.task_service import TaskService
from tinytask.core.services.comment_service import CommentService
from tinytask.core.services.link_service import LinkService
from tinytask.core.storage.client import DatabaseClient
from tinytask.core.storage.factory import get_default_client


@dataclass(frozen=True)
class Services:
    """The three entity services sharing one store adapter"""
    tasks: TaskService
    comments: CommentService
    links: LinkService


def create_services(db: Optional[DatabaseClient] = None) -> Services:
    """
    Wire the services to a database client

    Args:
        db: Store adapter; the default client is used when omitted

    Returns:
        Services bundle
    """
    if db is None:
        db = get_default_client()
    return Services(
        tasks=TaskService(db),
        comments=CommentService(db),
        links=LinkService(db),
    )


__all__ = [
    "TaskService",
    "CommentService",
    "LinkService",
    "Services",
    "create_services",
]

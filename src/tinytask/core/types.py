"""
Core type definitions for tinytask

Domain records returned by the services and the parameter structures they
accept. Records are plain pydantic models, detached from the storage layer:
the services translate rows into these models at the adapter boundary.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from tinytask.core.errors import ValidationError


# ============================================================================
# Task Status
# ============================================================================

class TaskStatus(str, Enum):
    """
    Task status variant

    Three mutually exclusive states. There is no enforced transition graph:
    any of the three may follow any other, callers own transition legality.
    Archival is tracked separately (archived_at) and never changes status.
    """
    IDLE = "idle"
    WORKING = "working"
    COMPLETE = "complete"

    @classmethod
    def parse(cls, value: Any) -> "TaskStatus":
        """
        Parse external text into a TaskStatus

        Args:
            value: Raw status (string or TaskStatus)

        Returns:
            TaskStatus member

        Raises:
            ValidationError: If value is not one of idle, working, complete
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        raise ValidationError(f"Invalid status: {value}")

    @classmethod
    def open_statuses(cls) -> List["TaskStatus"]:
        """Statuses that still belong in an agent's queue"""
        return [cls.IDLE, cls.WORKING]

    def __str__(self) -> str:
        return self.value


# ============================================================================
# Records
# ============================================================================

class Comment(BaseModel):
    """Comment attached to a task"""
    id: int
    task_id: int
    content: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Link(BaseModel):
    """Reference link (url, path or artifact pointer) attached to a task"""
    id: int
    task_id: int
    url: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class Task(BaseModel):
    """
    Task record with tags already decoded

    archived_at being set means the task is hidden from active views
    (list without include_archived, agent queues) but still stored.
    """
    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.IDLE
    assigned_to: Optional[str] = None
    created_by: Optional[str] = None
    priority: int = 0
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None


class TaskWithRelations(Task):
    """Task plus its comments and links, both ordered oldest first"""
    comments: List[Comment] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)


# ============================================================================
# Parameters
# ============================================================================

class CreateTaskParams(BaseModel):
    """Input for TaskService.create"""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    assigned_to: Optional[str] = None
    created_by: Optional[str] = None
    priority: Optional[int] = None
    tags: Optional[List[str]] = None


class TaskUpdate(BaseModel):
    """
    Partial update for a task

    Only fields explicitly passed are written (see model_fields_set),
    so passing description=None clears it while omitting it leaves it alone.
    Unknown keys are ignored.
    """
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    assigned_to: Optional[str] = None
    priority: Optional[int] = None
    tags: Optional[List[str]] = None
    archived_at: Optional[datetime] = None


class TaskFilters(BaseModel):
    """Filters for TaskService.list"""
    assigned_to: Optional[str] = None
    status: Optional[str] = None
    include_archived: bool = False
    limit: Optional[int] = None
    offset: Optional[int] = None


class CreateCommentParams(BaseModel):
    """Input for CommentService.create"""
    task_id: int
    content: Optional[str] = None
    created_by: Optional[str] = None


class CreateLinkParams(BaseModel):
    """Input for LinkService.create"""
    task_id: int
    url: Optional[str] = None
    description: Optional[str] = None
    created_by: Optional[str] = None


class LinkUpdate(BaseModel):
    """Partial update for a link, url and description only"""
    model_config = ConfigDict(extra="ignore")

    url: Optional[str] = None
    description: Optional[str] = None


__all__ = [
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
]

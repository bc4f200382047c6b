"""
Comment service - business logic for comment operations
"""

from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Union
from sqlalchemy import select, insert, update, delete

from tinytask.core.errors import IntegrityError, NotFoundError
from tinytask.core.storage.client import DatabaseClient
from tinytask.core.storage.sqlalchemy.models import comments_table, tasks_table
from tinytask.core.types import Comment, CreateCommentParams
from tinytask.core.utils.helpers import coerce_model, optional_text, require_text
from tinytask.core.utils.logger import get_logger

logger = get_logger(__name__)


class CommentService:
    """Comments attached to a task"""

    def __init__(self, db: DatabaseClient):
        self.db = db

    def _fetch_required(self, comment_id: int, action: str) -> Comment:
        comment = self.get(comment_id)
        if comment is None:
            raise IntegrityError(f"Failed to retrieve {action} comment")
        return comment

    def create(self, params: Union[CreateCommentParams, Mapping[str, Any]]) -> Comment:
        """
        Create a new comment

        The task existence check and the insert share one transaction.

        Raises:
            ValidationError: Empty content
            NotFoundError: task_id does not reference an existing task
            IntegrityError: The inserted row could not be read back
        """
        params = coerce_model(CreateCommentParams, params)
        content = require_text(params.content, "Comment content is required")

        with self.db.transaction():
            task = self.db.query_one(select(tasks_table.c.id).where(tasks_table.c.id == params.task_id))
            if task is None:
                raise NotFoundError("Task", params.task_id)

            now = datetime.now(timezone.utc)
            result = self.db.execute(
                insert(comments_table).values(
                    task_id=params.task_id,
                    content=content,
                    created_by=optional_text(params.created_by),
                    created_at=now,
                    updated_at=now,
                )
            )
            comment = self._fetch_required(result.generated_id, "created")

        logger.debug(f"Comment created id={comment.id} task_id={comment.task_id}")
        return comment

    def get(self, comment_id: int) -> Optional[Comment]:
        """Get comment by ID, None if not found"""
        row = self.db.query_one(select(comments_table).where(comments_table.c.id == comment_id))
        return Comment.model_validate(row) if row else None

    def update(self, comment_id: int, content: str) -> Comment:
        """
        Replace comment content

        Raises:
            ValidationError: Empty content
            NotFoundError: Unknown comment id
            IntegrityError: The updated row could not be read back
        """
        content = require_text(content, "Comment content cannot be empty")

        with self.db.transaction():
            if self.get(comment_id) is None:
                raise NotFoundError("Comment", comment_id)

            self.db.execute(
                update(comments_table)
                .where(comments_table.c.id == comment_id)
                .values(content=content, updated_at=datetime.now(timezone.utc))
            )
            comment = self._fetch_required(comment_id, "updated")

        logger.debug(f"Comment updated id={comment_id}")
        return comment

    def delete(self, comment_id: int) -> None:
        """
        Delete comment permanently

        Raises:
            NotFoundError: No row was deleted
        """
        result = self.db.execute(delete(comments_table).where(comments_table.c.id == comment_id))
        if result.rows_affected == 0:
            raise NotFoundError("Comment", comment_id)
        logger.debug(f"Comment deleted id={comment_id}")

    def list_by_task(self, task_id: int) -> List[Comment]:
        """All comments for a task, oldest first (task existence is not checked)"""
        rows = self.db.query(
            select(comments_table)
            .where(comments_table.c.task_id == task_id)
            .order_by(comments_table.c.created_at.asc(), comments_table.c.id.asc())
        )
        return [Comment.model_validate(row) for row in rows]


__all__ = [
    "CommentService",
]

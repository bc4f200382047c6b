"""
Test CommentService functionality
"""
import pytest
from contextlib import nullcontext
from unittest.mock import MagicMock, patch

from tinytask.core.errors import IntegrityError, NotFoundError, ValidationError
from tinytask.core.services.comment_service import CommentService
from tinytask.core.storage.client import ExecuteResult
from tinytask.core.types import CreateCommentParams


@pytest.fixture
def task(task_service):
    return task_service.create({"title": "Commented task"})


class TestCommentService:
    """Test CommentService CRUD"""

    def test_create_comment(self, comment_service, task):
        comment = comment_service.create(
            CreateCommentParams(task_id=task.id, content="  looks good  ", created_by="reviewer")
        )

        assert comment.id is not None
        assert comment.task_id == task.id
        assert comment.content == "looks good"
        assert comment.created_by == "reviewer"
        assert comment.created_at is not None
        assert comment.updated_at is not None

    def test_create_comment_for_missing_task(self, comment_service):
        with pytest.raises(NotFoundError, match="Task not found: 999"):
            comment_service.create({"task_id": 999, "content": "orphan"})

    @pytest.mark.parametrize("content", ["", "   ", None])
    def test_create_comment_requires_content(self, comment_service, task, content):
        with pytest.raises(ValidationError, match="Comment content is required"):
            comment_service.create({"task_id": task.id, "content": content})

        assert comment_service.list_by_task(task.id) == []

    def test_create_comment_requires_task_id(self, comment_service):
        with pytest.raises(ValidationError, match="task_id"):
            comment_service.create({"content": "no task"})

    def test_get_comment(self, comment_service, task):
        created = comment_service.create({"task_id": task.id, "content": "hello"})

        assert comment_service.get(created.id) == created
        assert comment_service.get(999) is None

    def test_update_comment(self, comment_service, task):
        created = comment_service.create({"task_id": task.id, "content": "draft"})

        updated = comment_service.update(created.id, " final ")

        assert updated.content == "final"
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at

    def test_update_comment_rejects_empty_content(self, comment_service, task):
        created = comment_service.create({"task_id": task.id, "content": "keep"})

        with pytest.raises(ValidationError, match="Comment content cannot be empty"):
            comment_service.update(created.id, "   ")

        assert comment_service.get(created.id).content == "keep"

    def test_update_missing_comment(self, comment_service):
        with pytest.raises(NotFoundError, match="Comment not found: 42"):
            comment_service.update(42, "text")

    def test_delete_comment(self, comment_service, task):
        created = comment_service.create({"task_id": task.id, "content": "bye"})

        comment_service.delete(created.id)

        assert comment_service.get(created.id) is None
        with pytest.raises(NotFoundError):
            comment_service.delete(created.id)

    def test_list_by_task_oldest_first(self, comment_service, task_service, task):
        other = task_service.create({"title": "Other"})
        first = comment_service.create({"task_id": task.id, "content": "1"})
        comment_service.create({"task_id": other.id, "content": "elsewhere"})
        second = comment_service.create({"task_id": task.id, "content": "2"})

        assert [c.id for c in comment_service.list_by_task(task.id)] == [first.id, second.id]

    def test_list_by_unknown_task_is_empty(self, comment_service):
        assert comment_service.list_by_task(999) == []


class TestCommentIntegrity:
    """Rows that cannot be read back after a write"""

    @staticmethod
    def _lost_row_client(*rows):
        db = MagicMock()
        db.transaction.return_value = nullcontext()
        db.execute.return_value = ExecuteResult(generated_id=7, rows_affected=1)
        db.query_one.side_effect = [*rows, None]
        return db

    def test_create_raises_integrity_error(self):
        db = self._lost_row_client({"id": 1})

        with pytest.raises(IntegrityError, match="Failed to retrieve created comment"):
            CommentService(db).create({"task_id": 1, "content": "hello"})

    def test_update_raises_integrity_error(self):
        db = self._lost_row_client({"id": 7, "task_id": 1, "content": "old"})

        with pytest.raises(IntegrityError, match="Failed to retrieve updated comment"):
            CommentService(db).update(7, "new")

    def test_integrity_error_rolls_back_the_insert(self, comment_service, task):
        with patch.object(comment_service, "get", return_value=None):
            with pytest.raises(IntegrityError):
                comment_service.create({"task_id": task.id, "content": "lost"})

        assert comment_service.list_by_task(task.id) == []

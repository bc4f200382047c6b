"""
Task service - business logic for task operations

TaskService owns the task lifecycle: create, update, archive, delete, listing
and per-agent queues, plus the two agent workflow operations (signing up for
the next idle task, handing a task over to another agent).
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union
from sqlalchemy import select, insert, update, delete

from tinytask.core.errors import IntegrityError, NotFoundError, ValidationError
from tinytask.core.storage.client import DatabaseClient
from tinytask.core.storage.serialization import dump_tags, load_tags
from tinytask.core.storage.sqlalchemy.models import tasks_table, comments_table, links_table
from tinytask.core.types import (
    Comment,
    CreateTaskParams,
    Link,
    Task,
    TaskFilters,
    TaskStatus,
    TaskUpdate,
    TaskWithRelations,
)
from tinytask.core.utils.helpers import coerce_model, optional_text, pick_dict, require_text
from tinytask.core.utils.logger import get_logger

logger = get_logger(__name__)

# Active-view ordering shared by list, get_queue and signup_for_task
TASK_ORDER = (tasks_table.c.priority.desc(), tasks_table.c.created_at.asc(), tasks_table.c.id.asc())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def parse_task_row(row: Mapping[str, Any]) -> Task:
    """
    Turn a tasks row into a Task

    Raises:
        ValidationError: If stored status or tags cannot be parsed
    """
    data = dict(row)
    data["status"] = TaskStatus.parse(data.get("status"))
    data["tags"] = load_tags(data.get("tags"))
    return Task.model_validate(data)


def build_task_changes(updates: TaskUpdate) -> Dict[str, Any]:
    """
    Map the fields present in a TaskUpdate to column values

    Only fields the caller explicitly set are returned; updated_at is not
    included. Validation happens here, before anything is written.

    Args:
        updates: Partial update

    Returns:
        Column name -> new value

    Raises:
        ValidationError: On empty title or unknown status
    """
    present = pick_dict(updates.model_dump(), updates.model_fields_set)
    changes: Dict[str, Any] = {}

    if "title" in present:
        changes["title"] = require_text(present["title"], "Task title cannot be empty")

    if "description" in present:
        changes["description"] = optional_text(present["description"])

    if "status" in present:
        if present["status"] is None:
            raise ValidationError("Invalid status: None")
        changes["status"] = TaskStatus.parse(present["status"]).value

    if "assigned_to" in present:
        changes["assigned_to"] = optional_text(present["assigned_to"])

    if "priority" in present:
        if present["priority"] is None:
            raise ValidationError("Task priority cannot be null")
        changes["priority"] = present["priority"]

    if "tags" in present:
        changes["tags"] = dump_tags(present["tags"] or [])

    if "archived_at" in present:
        changes["archived_at"] = present["archived_at"]

    return changes


class TaskService:
    """
    Task service

    Every multi-statement operation runs in one DatabaseClient transaction;
    reads run without one.
    """

    def __init__(self, db: DatabaseClient):
        self.db = db

    # ---- internal reads ----

    def _fetch(self, task_id: int) -> Optional[Task]:
        row = self.db.query_one(select(tasks_table).where(tasks_table.c.id == task_id))
        return parse_task_row(row) if row else None

    def _fetch_required(self, task_id: int, action: str) -> Task:
        task = self._fetch(task_id)
        if task is None:
            raise IntegrityError(f"Failed to retrieve {action} task")
        return task

    def _with_relations(self, task: Task) -> TaskWithRelations:
        comments = self.db.query(
            select(comments_table)
            .where(comments_table.c.task_id == task.id)
            .order_by(comments_table.c.created_at.asc(), comments_table.c.id.asc())
        )
        links = self.db.query(
            select(links_table)
            .where(links_table.c.task_id == task.id)
            .order_by(links_table.c.created_at.asc(), links_table.c.id.asc())
        )
        return TaskWithRelations(
            **task.model_dump(),
            comments=[Comment.model_validate(c) for c in comments],
            links=[Link.model_validate(link) for link in links],
        )

    # ---- public API ----

    def create(self, params: Union[CreateTaskParams, Mapping[str, Any]]) -> Task:
        """
        Create a new task

        Args:
            params: CreateTaskParams or equivalent mapping

        Returns:
            Created task, tags decoded

        Raises:
            ValidationError: Empty title or invalid status
            IntegrityError: The inserted row could not be read back
        """
        params = coerce_model(CreateTaskParams, params)

        title = require_text(params.title, "Task title is required")
        status = TaskStatus.parse(params.status) if params.status else TaskStatus.IDLE
        priority = params.priority if params.priority is not None else 0
        tags = dump_tags(params.tags) if params.tags else None
        now = _now()

        with self.db.transaction():
            result = self.db.execute(
                insert(tasks_table).values(
                    title=title,
                    description=optional_text(params.description),
                    status=status.value,
                    assigned_to=optional_text(params.assigned_to),
                    created_by=optional_text(params.created_by),
                    priority=priority,
                    tags=tags,
                    created_at=now,
                    updated_at=now,
                )
            )
            task = self._fetch_required(result.generated_id, "created")

        logger.debug(f"Task created id={task.id} status={task.status.value} priority={task.priority}")
        return task

    def get(self, task_id: int, include_relations: bool = False) -> Optional[Union[Task, TaskWithRelations]]:
        """
        Get task by ID

        Args:
            task_id: Task ID
            include_relations: Also load comments and links, oldest first

        Returns:
            Task (or TaskWithRelations) or None if not found
        """
        task = self._fetch(task_id)
        if task is None:
            return None
        if not include_relations:
            return task
        return self._with_relations(task)

    def update(self, task_id: int, updates: Union[TaskUpdate, Mapping[str, Any]]) -> Task:
        """
        Update supplied task fields

        When no recognized field is supplied the existing task is returned and
        nothing is written.

        Raises:
            NotFoundError: Unknown task id
            ValidationError: Empty title or invalid status
            IntegrityError: The updated row could not be read back
        """
        updates = coerce_model(TaskUpdate, updates)

        with self.db.transaction():
            existing = self._fetch(task_id)
            if existing is None:
                raise NotFoundError("Task", task_id)

            changes = build_task_changes(updates)
            if not changes:
                return existing

            changes["updated_at"] = _now()
            self.db.execute(
                update(tasks_table).where(tasks_table.c.id == task_id).values(**changes)
            )
            task = self._fetch_required(task_id, "updated")

        logger.debug(f"Task updated id={task_id} fields={sorted(changes)}")
        return task

    def delete(self, task_id: int) -> None:
        """
        Delete task permanently

        Raises:
            NotFoundError: No row was deleted
        """
        result = self.db.execute(delete(tasks_table).where(tasks_table.c.id == task_id))
        if result.rows_affected == 0:
            raise NotFoundError("Task", task_id)
        logger.debug(f"Task deleted id={task_id}")

    def list(self, filters: Union[TaskFilters, Mapping[str, Any], None] = None) -> List[Task]:
        """
        List tasks, highest priority first then oldest first

        Args:
            filters: assigned_to / status equality, include_archived
                (default False), limit / offset (0 means no
                limit / no offset)

        Returns:
            Matching tasks
        """
        filters = coerce_model(TaskFilters, filters)

        stmt = select(tasks_table)
        if filters.assigned_to is not None:
            stmt = stmt.where(tasks_table.c.assigned_to == filters.assigned_to)
        if filters.status is not None:
            stmt = stmt.where(tasks_table.c.status == TaskStatus.parse(filters.status).value)
        if not filters.include_archived:
            stmt = stmt.where(tasks_table.c.archived_at.is_(None))

        stmt = stmt.order_by(*TASK_ORDER)

        if filters.limit is not None:
            if filters.limit < 0:
                raise ValidationError("limit must be a non-negative integer")
            if filters.limit > 0:
                stmt = stmt.limit(filters.limit)
        if filters.offset is not None:
            if filters.offset < 0:
                raise ValidationError("offset must be a non-negative integer")
            if filters.offset > 0:
                stmt = stmt.offset(filters.offset)

        return [parse_task_row(row) for row in self.db.query(stmt)]

    def get_queue(self, agent_name: str) -> List[Task]:
        """
        Agent's queue: assigned, idle or working, not archived

        Args:
            agent_name: Assignee

        Returns:
            Tasks in list() order
        """
        stmt = (
            select(tasks_table)
            .where(tasks_table.c.assigned_to == agent_name)
            .where(tasks_table.c.status.in_([s.value for s in TaskStatus.open_statuses()]))
            .where(tasks_table.c.archived_at.is_(None))
            .order_by(*TASK_ORDER)
        )
        return [parse_task_row(row) for row in self.db.query(stmt)]

    def archive(self, task_id: int) -> Task:
        """
        Archive a task (soft delete)

        Raises:
            NotFoundError: Unknown task id
            IntegrityError: The archived row could not be read back
        """
        with self.db.transaction():
            if self._fetch(task_id) is None:
                raise NotFoundError("Task", task_id)

            self.db.execute(
                update(tasks_table).where(tasks_table.c.id == task_id).values(archived_at=_now())
            )
            task = self._fetch_required(task_id, "archived")

        logger.debug(f"Task archived id={task_id}")
        return task

    def signup_for_task(self, agent_name: str) -> Optional[TaskWithRelations]:
        """
        Claim the agent's next idle task and move it to working

        The next task is the highest priority, then oldest, idle and
        unarchived task assigned to the agent. Selection and claim share one
        transaction. The selected row is locked (FOR UPDATE SKIP LOCKED where
        the dialect supports row locks) and the claim only matches a row that
        is still idle, so two callers never claim the same task.

        Args:
            agent_name: Agent claiming work

        Returns:
            Claimed task with comments and links, or None if nothing is idle
        """
        agent_name = require_text(agent_name, "Agent name is required")

        with self.db.transaction():
            row = self.db.query_one(
                select(tasks_table.c.id)
                .where(tasks_table.c.assigned_to == agent_name)
                .where(tasks_table.c.status == TaskStatus.IDLE.value)
                .where(tasks_table.c.archived_at.is_(None))
                .order_by(*TASK_ORDER)
                .limit(1)
                .with_for_update(skip_locked=True)
            )
            if row is None:
                logger.debug(f"No idle task in queue for agent {agent_name}")
                return None

            task_id = row["id"]
            result = self.db.execute(
                update(tasks_table)
                .where(tasks_table.c.id == task_id)
                .where(tasks_table.c.status == TaskStatus.IDLE.value)
                .values(status=TaskStatus.WORKING.value, updated_at=_now())
            )
            if result.rows_affected == 0:
                logger.warning(f"Task #{task_id} was claimed concurrently, nothing claimed for {agent_name}")
                return None

            task = self._with_relations(self._fetch_required(task_id, "claimed"))

        logger.info(f"Task #{task_id} claimed by {agent_name} and set to working")
        return task

    def move_task(self, task_id: int, current_agent: str, new_agent: str, comment: str) -> TaskWithRelations:
        """
        Hand a task over to another agent

        The task is reassigned, reset to idle and a handoff comment authored
        by current_agent is recorded, all in one transaction.

        Args:
            task_id: Task to transfer
            current_agent: Agent the task must currently be assigned to
            new_agent: Agent receiving the task
            comment: Handoff message

        Returns:
            Transferred task with comments and links

        Raises:
            ValidationError: Empty current_agent/new_agent/comment, task
                assigned to someone else, or task already complete
            NotFoundError: Unknown task id
        """
        current_agent = require_text(current_agent, "Current agent is required")
        new_agent = require_text(new_agent, "New agent is required")
        content = require_text(comment, "Handoff comment is required")

        with self.db.transaction():
            existing = self._fetch(task_id)
            if existing is None:
                raise NotFoundError("Task", task_id)

            if existing.assigned_to != current_agent:
                raise ValidationError(f"Task {task_id} is not assigned to {current_agent}")

            if existing.status not in TaskStatus.open_statuses():
                raise ValidationError(
                    f"Task {task_id} with status '{existing.status.value}' cannot be transferred "
                    f"(only 'idle' or 'working' are allowed)"
                )

            now = _now()
            self.db.execute(
                update(tasks_table)
                .where(tasks_table.c.id == task_id)
                .values(assigned_to=new_agent, status=TaskStatus.IDLE.value, updated_at=now)
            )
            self.db.execute(
                insert(comments_table).values(
                    task_id=task_id,
                    content=content,
                    created_by=current_agent,
                    created_at=now,
                    updated_at=now,
                )
            )
            task = self._with_relations(self._fetch_required(task_id, "transferred"))

        logger.info(f"Task #{task_id} transferred from {current_agent} to {new_agent}")
        return task


__all__ = [
    "TaskService",
    "build_task_changes",
    "parse_task_row",
]

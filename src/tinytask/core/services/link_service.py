"""
Link service - business logic for link/artifact operations

Links point at whatever a task produced or depends on: URLs, file paths,
artifact ids. Unlike tasks and comments they carry no updated_at, an update
only re-points url/description.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union
from sqlalchemy import select, insert, update, delete

from tinytask.core.errors import IntegrityError, NotFoundError
from tinytask.core.storage.client import DatabaseClient
from tinytask.core.storage.sqlalchemy.models import links_table, tasks_table
from tinytask.core.types import CreateLinkParams, Link, LinkUpdate
from tinytask.core.utils.helpers import coerce_model, optional_text, pick_dict, require_text
from tinytask.core.utils.logger import get_logger

logger = get_logger(__name__)


def build_link_changes(updates: LinkUpdate) -> Dict[str, Any]:
    """
    Map the fields present in a LinkUpdate to column values

    Raises:
        ValidationError: On a supplied empty url
    """
    present = pick_dict(updates.model_dump(), updates.model_fields_set)
    changes: Dict[str, Any] = {}

    if "url" in present:
        changes["url"] = require_text(present["url"], "Link URL cannot be empty")

    if "description" in present:
        changes["description"] = optional_text(present["description"])

    return changes


class LinkService:
    """Reference links attached to a task"""

    def __init__(self, db: DatabaseClient):
        self.db = db

    def _fetch_required(self, link_id: int, action: str) -> Link:
        link = self.get(link_id)
        if link is None:
            raise IntegrityError(f"Failed to retrieve {action} link")
        return link

    def create(self, params: Union[CreateLinkParams, Mapping[str, Any]]) -> Link:
        """
        Create a new link

        Raises:
            ValidationError: Empty url
            NotFoundError: task_id does not reference an existing task
            IntegrityError: The inserted row could not be read back
        """
        params = coerce_model(CreateLinkParams, params)
        url = require_text(params.url, "Link URL is required")

        with self.db.transaction():
            task = self.db.query_one(select(tasks_table.c.id).where(tasks_table.c.id == params.task_id))
            if task is None:
                raise NotFoundError("Task", params.task_id)

            result = self.db.execute(
                insert(links_table).values(
                    task_id=params.task_id,
                    url=url,
                    description=optional_text(params.description),
                    created_by=optional_text(params.created_by),
                    created_at=datetime.now(timezone.utc),
                )
            )
            link = self._fetch_required(result.generated_id, "created")

        logger.debug(f"Link created id={link.id} task_id={link.task_id}")
        return link

    def get(self, link_id: int) -> Optional[Link]:
        """Get link by ID, None if not found"""
        row = self.db.query_one(select(links_table).where(links_table.c.id == link_id))
        return Link.model_validate(row) if row else None

    def update(self, link_id: int, updates: Union[LinkUpdate, Mapping[str, Any]]) -> Link:
        """
        Update url and/or description

        Returns the existing link without writing when nothing is supplied.

        Raises:
            NotFoundError: Unknown link id
            ValidationError: Supplied url is empty
            IntegrityError: The updated row could not be read back
        """
        updates = coerce_model(LinkUpdate, updates)

        with self.db.transaction():
            existing = self.get(link_id)
            if existing is None:
                raise NotFoundError("Link", link_id)

            changes = build_link_changes(updates)
            if not changes:
                return existing

            self.db.execute(
                update(links_table).where(links_table.c.id == link_id).values(**changes)
            )
            link = self._fetch_required(link_id, "updated")

        logger.debug(f"Link updated id={link_id} fields={sorted(changes)}")
        return link

    def delete(self, link_id: int) -> None:
        """
        Delete link permanently

        Raises:
            NotFoundError: No row was deleted
        """
        result = self.db.execute(delete(links_table).where(links_table.c.id == link_id))
        if result.rows_affected == 0:
            raise NotFoundError("Link", link_id)
        logger.debug(f"Link deleted id={link_id}")

    def list_by_task(self, task_id: int) -> List[Link]:
        """All links for a task, oldest first"""
        rows = self.db.query(
            select(links_table)
            .where(links_table.c.task_id == task_id)
            .order_by(links_table.c.created_at.asc(), links_table.c.id.asc())
        )
        return [Link.model_validate(row) for row in rows]


__all__ = [
    "LinkService",
    "build_link_changes",
]

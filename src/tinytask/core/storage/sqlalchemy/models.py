"""
SQLAlchemy models for task, comment and link storage
"""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text
from sqlalchemy.orm import declarative_base
import os

Base = declarative_base()

# Table name configuration - supports environment variable override
TASK_TABLE_NAME = os.getenv("TINYTASK_TASK_TABLE_NAME", "tasks")
COMMENT_TABLE_NAME = os.getenv("TINYTASK_COMMENT_TABLE_NAME", "comments")
LINK_TABLE_NAME = os.getenv("TINYTASK_LINK_TABLE_NAME", "links")


class TaskModel(Base):
    """
    Task row

    tags holds a JSON array of strings (see storage.serialization).
    Timestamps are written by the services, not by server defaults, so that
    every dialect stores comparable values with sub-second precision.
    """
    __tablename__ = TASK_TABLE_NAME

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="idle", index=True)
    assigned_to = Column(String(255), nullable=True, index=True)
    created_by = Column(String(255), nullable=True)
    priority = Column(Integer, nullable=False, default=0)
    tags = Column(Text, nullable=True)

    # === Timestamps ===
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    archived_at = Column(DateTime(timezone=True), nullable=True, index=True)

    def __repr__(self):
        return f"<TaskModel(id={self.id}, title='{self.title}', status='{self.status}')>"


class CommentModel(Base):
    """Comment row, task_id cascades when the task row is deleted"""
    __tablename__ = COMMENT_TABLE_NAME

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(
        Integer,
        ForeignKey(f"{TASK_TABLE_NAME}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content = Column(Text, nullable=False)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<CommentModel(id={self.id}, task_id={self.task_id})>"


class LinkModel(Base):
    """Link row, no updated_at: links are only ever re-pointed, not edited"""
    __tablename__ = LINK_TABLE_NAME

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(
        Integer,
        ForeignKey(f"{TASK_TABLE_NAME}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<LinkModel(id={self.id}, task_id={self.task_id}, url='{self.url}')>"


# Core table handles used by the services' statements
tasks_table = TaskModel.__table__
comments_table = CommentModel.__table__
links_table = LinkModel.__table__

"""
Task ORM model.
"""

from __future__ import annotations

import enum
from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.models.base import AuditMixin, Base, TimestampMixin, UUIDMixin
from taskhub.models.task_label import task_label_assignments

if TYPE_CHECKING:
    from taskhub.models.project import Project
    from taskhub.models.task_comment import TaskComment
    from taskhub.models.task_label import TaskLabel
    from taskhub.models.task_status import TaskStatus
    from taskhub.models.user import User


class TaskPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class Task(Base, UUIDMixin, TimestampMixin, AuditMixin):
    """Represents a work item within a project."""

    __tablename__ = "tasks"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status_id: Mapped[UUID] = mapped_column(
        ForeignKey("task_statuses.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    assigned_user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority, name="task_priority", native_enum=False, length=20),
        nullable=False,
        default=TaskPriority.medium,
    )
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    image_path: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Relationships
    project: Mapped[Project] = relationship("Project", back_populates="tasks")
    status: Mapped[TaskStatus] = relationship("TaskStatus", back_populates="tasks")
    assigned_user: Mapped[User | None] = relationship(
        "User", foreign_keys=[assigned_user_id]
    )
    labels: Mapped[list[TaskLabel]] = relationship(
        "TaskLabel", secondary=task_label_assignments, back_populates="tasks"
    )
    comments: Mapped[list[TaskComment]] = relationship(
        "TaskComment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskComment.created_at",
    )

    def __repr__(self) -> str:
        return f"<Task id={self.id} name={self.name!r} project_id={self.project_id}>"

"""
Project ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.models.base import AuditMixin, Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from taskhub.models.project_member import ProjectMember
    from taskhub.models.task import Task
    from taskhub.models.task_label import TaskLabel
    from taskhub.models.task_status import TaskStatus


class ProjectStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"


class Project(Base, UUIDMixin, TimestampMixin, AuditMixin):
    """A workspace owning tasks, project-scoped labels and statuses."""

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status", native_enum=False, length=20),
        nullable=False,
        default=ProjectStatus.pending,
    )
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    image_path: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Relationships
    members: Mapped[list[ProjectMember]] = relationship(
        "ProjectMember", back_populates="project", cascade="all, delete-orphan"
    )
    tasks: Mapped[list[Task]] = relationship(
        "Task", back_populates="project", cascade="all, delete-orphan"
    )
    labels: Mapped[list[TaskLabel]] = relationship(
        "TaskLabel", back_populates="project", cascade="all, delete-orphan"
    )
    statuses: Mapped[list[TaskStatus]] = relationship(
        "TaskStatus", back_populates="project", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Project id={self.id} name={self.name!r} status={self.status}>"

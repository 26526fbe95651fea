"""
TaskStatus ORM model.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.models.base import Base, UUIDMixin

if TYPE_CHECKING:
    from taskhub.models.project import Project
    from taskhub.models.task import Task


# Used when a project is created and no global default rows are seeded.
DEFAULT_TASK_STATUSES: list[tuple[str, str]] = [
    ("To Do", "#6366f1"),
    ("In Progress", "#f59e0b"),
    ("Completed", "#10b981"),
]


class TaskStatus(Base, UUIDMixin):
    """
    A status column a task can be in.

    Rows without a project are the global default set; every project gets its
    own copy on creation.
    """

    __tablename__ = "task_statuses"

    project_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    project: Mapped[Project | None] = relationship("Project", back_populates="statuses")
    tasks: Mapped[list[Task]] = relationship("Task", back_populates="status")

    def __repr__(self) -> str:
        return f"<TaskStatus id={self.id} name={self.name!r} project_id={self.project_id}>"

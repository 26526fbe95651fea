"""
TaskLabel ORM model and the task/label association table.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.models.base import Base, UUIDMixin

if TYPE_CHECKING:
    from taskhub.models.project import Project
    from taskhub.models.task import Task


task_label_assignments = Table(
    "task_label_assignments",
    Base.metadata,
    Column("task_id", ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("task_label_id", ForeignKey("task_labels.id", ondelete="CASCADE"), primary_key=True),
)


class TaskLabel(Base, UUIDMixin):
    """
    A label that can be applied to tasks.

    ``project_id`` is NULL for global default labels, which every project
    can use but nobody can edit or delete through the API.
    """

    __tablename__ = "task_labels"
    __table_args__ = (UniqueConstraint("project_id", "name"),)

    project_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#6366f1")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    project: Mapped[Project | None] = relationship("Project", back_populates="labels")
    tasks: Mapped[list[Task]] = relationship(
        "Task", secondary=task_label_assignments, back_populates="labels"
    )

    @property
    def is_default(self) -> bool:
        return self.project_id is None

    def __repr__(self) -> str:
        return f"<TaskLabel id={self.id} name={self.name!r} project_id={self.project_id}>"

"""
TaskComment ORM model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from taskhub.models.task import Task
    from taskhub.models.user import User


class TaskComment(Base, UUIDMixin, TimestampMixin):
    """A comment on a task."""

    __tablename__ = "task_comments"

    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)

    # Relationships
    task: Mapped[Task] = relationship("Task", back_populates="comments")
    user: Mapped[User] = relationship("User")

    def __repr__(self) -> str:
        return f"<TaskComment id={self.id} task_id={self.task_id} user_id={self.user_id}>"

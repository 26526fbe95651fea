"""
ProjectMember ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.models.base import Base, UUIDMixin

if TYPE_CHECKING:
    from taskhub.models.project import Project
    from taskhub.models.user import User


class ProjectRole(str, enum.Enum):
    """Project-level role enumeration."""

    manager = "manager"
    member = "member"


class InvitationStatus(str, enum.Enum):
    """Lifecycle of a project invitation."""

    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class ProjectMember(Base, UUIDMixin):
    """
    Invitation row linking a user to a project with a role.

    Only rows with status ``accepted`` grant any permission.
    """

    __tablename__ = "project_members"
    __table_args__ = (UniqueConstraint("project_id", "user_id"),)

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[ProjectRole] = mapped_column(
        Enum(ProjectRole, name="project_role", native_enum=False, length=20),
        nullable=False,
    )
    status: Mapped[InvitationStatus] = mapped_column(
        Enum(InvitationStatus, name="invitation_status", native_enum=False, length=20),
        nullable=False,
        default=InvitationStatus.pending,
    )
    invited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    project: Mapped[Project] = relationship("Project", back_populates="members")
    user: Mapped[User] = relationship("User", back_populates="project_memberships")

    @property
    def is_accepted(self) -> bool:
        return self.status == InvitationStatus.accepted

    def __repr__(self) -> str:
        return (
            f"<ProjectMember project_id={self.project_id} user_id={self.user_id} "
            f"role={self.role} status={self.status}>"
        )

"""
Project business logic.

Handles project listing and creation, and the invitation lifecycle that
produces project memberships.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.core.exceptions import field_error, not_found
from taskhub.core.storage import Storage, image_key
from taskhub.models.project import Project
from taskhub.models.project_member import InvitationStatus, ProjectMember, ProjectRole
from taskhub.models.task_status import DEFAULT_TASK_STATUSES, TaskStatus
from taskhub.models.user import User
from taskhub.schemas.common import OptionItem, UserSummaryResponse
from taskhub.schemas.project import (
    PROJECT_STATUS_LABELS,
    MemberResponse,
    ProjectCreateRequest,
    ProjectListResponse,
    ProjectResponse,
)

logger = logging.getLogger(__name__)


class ProjectService:
    """Handles all project operations."""

    def __init__(self, db: AsyncSession, storage: Storage) -> None:
        self.db = db
        self.storage = storage

    # -----------------------------------------------------------------------
    # List Projects
    # -----------------------------------------------------------------------

    async def list_projects(self, user: User) -> ProjectListResponse:
        """Projects where the user's invitation was accepted, by name."""
        result = await self.db.execute(
            select(Project, ProjectMember.role)
            .join(ProjectMember, ProjectMember.project_id == Project.id)
            .where(
                ProjectMember.user_id == user.id,
                ProjectMember.status == InvitationStatus.accepted,
            )
            .order_by(Project.name.asc())
        )
        projects = [self.to_response(project, role) for project, role in result.all()]
        return ProjectListResponse(projects=projects, total=len(projects))

    @staticmethod
    def status_options() -> list[OptionItem]:
        return [
            OptionItem(value=value.value, label=label)
            for value, label in PROJECT_STATUS_LABELS.items()
        ]

    # -----------------------------------------------------------------------
    # Create Project
    # -----------------------------------------------------------------------

    async def create_project(
        self,
        user: User,
        data: ProjectCreateRequest,
        image: tuple[bytes, str] | None = None,
    ) -> ProjectResponse:
        """
        Create a project owned by ``user``.

        - Creator becomes its accepted manager
        - Global default statuses are copied into the project
        - Optional image is written to storage
        """
        project = Project(
            name=data.name,
            description=data.description,
            due_date=data.due_date,
            status=data.status,
            created_by=user.id,
            updated_by=user.id,
        )
        self.db.add(project)
        await self.db.flush()

        self.db.add(
            ProjectMember(
                project_id=project.id,
                user_id=user.id,
                role=ProjectRole.manager,
                status=InvitationStatus.accepted,
                responded_at=datetime.now(timezone.utc),
            )
        )

        result = await self.db.scalars(
            select(TaskStatus)
            .where(TaskStatus.project_id.is_(None))
            .order_by(TaskStatus.position.asc())
        )
        defaults = [(s.name, s.color) for s in result.all()] or DEFAULT_TASK_STATUSES
        for position, (name, color) in enumerate(defaults):
            self.db.add(
                TaskStatus(project_id=project.id, name=name, color=color, position=position)
            )

        if image is not None:
            data_bytes, extension = image
            key = image_key(f"project_images/{project.id}", extension)
            await self.storage.put(key, data_bytes)
            project.image_path = key

        await self.db.flush()
        logger.info("Created project id=%s by user_id=%s", project.id, user.id)

        project = await self.get_project(project.id)
        return self.to_response(project, ProjectRole.manager)

    # -----------------------------------------------------------------------
    # Get Project
    # -----------------------------------------------------------------------

    async def get_project(self, project_id: UUID) -> Project:
        project = await self.db.scalar(
            select(Project)
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        if project is None:
            raise not_found("PROJECT_NOT_FOUND", "Project not found")
        return project

    async def get_members(self, project: Project) -> list[MemberResponse]:
        result = await self.db.scalars(
            select(ProjectMember)
            .where(ProjectMember.project_id == project.id)
            .options(selectinload(ProjectMember.user))
            .order_by(ProjectMember.invited_at.asc())
        )
        return [self._member_response(m) for m in result.all()]

    # -----------------------------------------------------------------------
    # Invitations
    # -----------------------------------------------------------------------

    async def invite(self, project: Project, email: str, role: ProjectRole) -> MemberResponse:
        """Invite an existing user by email. The invitation starts out pending."""
        invitee = await self.db.scalar(select(User).where(User.email == email.lower()))
        if invitee is None:
            raise field_error("email", "No user is registered with this email address.")

        existing = await self.db.scalar(
            select(ProjectMember.id).where(
                ProjectMember.project_id == project.id,
                ProjectMember.user_id == invitee.id,
            )
        )
        if existing is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "code": "ALREADY_INVITED",
                    "message": "This user has already been invited to the project",
                },
            )

        member = ProjectMember(
            project_id=project.id,
            user_id=invitee.id,
            role=role,
            status=InvitationStatus.pending,
        )
        self.db.add(member)
        await self.db.flush()
        logger.info(
            "Invited user_id=%s to project_id=%s as %s", invitee.id, project.id, role.value
        )

        return MemberResponse(
            user=UserSummaryResponse.model_validate(invitee),
            role=member.role,
            status=member.status,
        )

    async def respond_to_invitation(
        self, membership: ProjectMember | None, user: User, accept: bool
    ) -> MemberResponse:
        if membership is None or membership.status != InvitationStatus.pending:
            raise not_found("INVITATION_NOT_FOUND", "No pending invitation for this project")

        membership.status = InvitationStatus.accepted if accept else InvitationStatus.declined
        membership.responded_at = datetime.now(timezone.utc)
        await self.db.flush()
        logger.info(
            "User user_id=%s %s invitation to project_id=%s",
            user.id,
            membership.status.value,
            membership.project_id,
        )

        return MemberResponse(
            user=UserSummaryResponse.model_validate(user),
            role=membership.role,
            status=membership.status,
        )

    # -----------------------------------------------------------------------
    # Serialization
    # -----------------------------------------------------------------------

    def to_response(self, project: Project, role: ProjectRole | None = None) -> ProjectResponse:
        return ProjectResponse(
            id=project.id,
            name=project.name,
            description=project.description,
            status=project.status,
            due_date=project.due_date,
            image_url=self.storage.url(project.image_path) if project.image_path else None,
            created_by=project.created_by,
            created_at=project.created_at,
            updated_at=project.updated_at,
            role=role,
        )

    @staticmethod
    def _member_response(member: ProjectMember) -> MemberResponse:
        return MemberResponse(
            user=UserSummaryResponse.model_validate(member.user),
            role=member.role,
            status=member.status,
        )

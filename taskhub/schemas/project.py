from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from taskhub.models.project import ProjectStatus
from taskhub.models.project_member import InvitationStatus, ProjectRole
from taskhub.schemas.common import OptionItem, UserSummaryResponse

PROJECT_STATUS_LABELS: dict[ProjectStatus, str] = {
    ProjectStatus.pending: "Pending",
    ProjectStatus.in_progress: "In Progress",
    ProjectStatus.completed: "Completed",
}


class ProjectCreateRequest(BaseModel):
    """The validated creation form; the image travels separately."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    due_date: datetime | None = None
    status: ProjectStatus

    @field_validator("description", "due_date", mode="before")
    @classmethod
    def blank_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ProjectResponse(BaseModel):
    id: UUID
    name: str
    description: str | None
    status: ProjectStatus
    due_date: datetime | None
    image_url: str | None = None
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime
    role: ProjectRole | None = None


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    total: int


class ProjectCreateFormResponse(BaseModel):
    """Options for the project creation form."""

    status_options: list[OptionItem]


class MemberResponse(BaseModel):
    user: UserSummaryResponse
    role: ProjectRole
    status: InvitationStatus


class ProjectDetailResponse(BaseModel):
    project: ProjectResponse
    members: list[MemberResponse]
    can_manage_tasks: bool
    can_invite: bool


class ProjectCreatedResponse(BaseModel):
    message: str
    project: ProjectResponse


class InvitationRequest(BaseModel):
    """Request body for POST /projects/{project_id}/invitations."""

    email: EmailStr
    role: ProjectRole = ProjectRole.member


class InvitationResponse(BaseModel):
    message: str
    member: MemberResponse

"""
Project management endpoints.

Listing, the creation form, detail and invitations.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.database import get_db
from taskhub.core.dependencies import get_current_user, get_project_access
from taskhub.core.permissions import can_invite, can_manage_task, can_view_project, ensure
from taskhub.core.storage import Storage, get_storage, read_image_upload
from taskhub.models.project import Project, ProjectStatus
from taskhub.models.project_member import ProjectMember
from taskhub.models.user import User
from taskhub.schemas.project import (
    InvitationRequest,
    InvitationResponse,
    ProjectCreatedResponse,
    ProjectCreateFormResponse,
    ProjectCreateRequest,
    ProjectDetailResponse,
    ProjectListResponse,
)
from taskhub.services.project_service import ProjectService

router = APIRouter()


def get_project_service(
    db: AsyncSession = Depends(get_db),
    storage: Storage = Depends(get_storage),
) -> ProjectService:
    return ProjectService(db=db, storage=storage)


# ---------------------------------------------------------------------------
# List / Create
# ---------------------------------------------------------------------------

@router.get(
    "/projects",
    response_model=ProjectListResponse,
    summary="List projects the current user belongs to",
)
async def list_projects(
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> ProjectListResponse:
    return await service.list_projects(current_user)


@router.get(
    "/projects/create",
    response_model=ProjectCreateFormResponse,
    summary="Options for the project creation form",
)
async def create_project_form(
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> ProjectCreateFormResponse:
    return ProjectCreateFormResponse(status_options=service.status_options())


@router.post(
    "/projects",
    response_model=ProjectCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new project",
)
async def create_project(
    name: Annotated[str, Form(min_length=1, max_length=255)],
    project_status: Annotated[ProjectStatus, Form(alias="status")],
    description: Annotated[str | None, Form()] = None,
    due_date: Annotated[datetime | None, Form()] = None,
    image: UploadFile | None = File(None),
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> ProjectCreatedResponse:
    """
    Create a project from the multipart creation form.

    - ``name`` and ``status`` are required
    - ``image`` is optional: jpeg, png, jpg, webp or svg up to 2048 KB
    - The creator becomes the project's manager
    """
    data = ProjectCreateRequest(
        name=name, status=project_status, description=description, due_date=due_date
    )
    upload = None
    if image is not None and image.filename:
        upload = await read_image_upload(image)

    project = await service.create_project(current_user, data, upload)
    return ProjectCreatedResponse(message="Project created successfully.", project=project)


# ---------------------------------------------------------------------------
# Detail
# ---------------------------------------------------------------------------

@router.get(
    "/projects/{project_id}",
    response_model=ProjectDetailResponse,
    summary="Get project detail",
)
async def get_project(
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
    service: ProjectService = Depends(get_project_service),
) -> ProjectDetailResponse:
    project, membership = access
    ensure(can_view_project(membership), "You are not authorized to view this project.")

    return ProjectDetailResponse(
        project=service.to_response(project, membership.role),
        members=await service.get_members(project),
        can_manage_tasks=can_manage_task(membership),
        can_invite=can_invite(membership),
    )


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

@router.post(
    "/projects/{project_id}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite an existing user to the project",
)
async def invite_user(
    data: InvitationRequest,
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
    service: ProjectService = Depends(get_project_service),
) -> InvitationResponse:
    project, membership = access
    ensure(can_invite(membership), "You are not authorized to invite users to this project.")

    member = await service.invite(project, data.email, data.role)
    return InvitationResponse(message=f"Invitation sent to {data.email}.", member=member)


@router.post(
    "/projects/{project_id}/invitations/accept",
    response_model=InvitationResponse,
    summary="Accept a pending invitation",
)
async def accept_invitation(
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> InvitationResponse:
    project, membership = access
    member = await service.respond_to_invitation(membership, current_user, accept=True)
    return InvitationResponse(message=f"You joined '{project.name}'.", member=member)


@router.post(
    "/projects/{project_id}/invitations/decline",
    response_model=InvitationResponse,
    summary="Decline a pending invitation",
)
async def decline_invitation(
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> InvitationResponse:
    project, membership = access
    member = await service.respond_to_invitation(membership, current_user, accept=False)
    return InvitationResponse(
        message=f"You declined the invitation to '{project.name}'.", member=member
    )

"""
Task label endpoints, nested under a project.

Global default labels show up in every project's listing but are refused
by every mutation, whatever the caller's role.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.database import get_db
from taskhub.core.dependencies import get_project_access
from taskhub.core.permissions import can_manage_labels, can_view_project, ensure, is_default_label
from taskhub.models.project import Project
from taskhub.models.project_member import ProjectMember
from taskhub.schemas.common import ProjectSummaryResponse
from taskhub.schemas.task_label import (
    TaskLabelCreateRequest,
    TaskLabelFormResponse,
    TaskLabelIndexResponse,
    TaskLabelMessageResponse,
    TaskLabelResponse,
    TaskLabelUpdateRequest,
)
from taskhub.services.task_label_service import TaskLabelService

router = APIRouter()


def get_task_label_service(db: AsyncSession = Depends(get_db)) -> TaskLabelService:
    return TaskLabelService(db=db)


def _require_manager(membership: ProjectMember | None) -> None:
    ensure(
        can_manage_labels(membership),
        "You are not authorized to manage labels for this project.",
    )


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------

@router.get(
    "/projects/{project_id}/labels",
    response_model=TaskLabelIndexResponse,
    summary="List labels available in a project",
)
async def list_labels(
    name: str | None = Query(default=None, max_length=50),
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
    service: TaskLabelService = Depends(get_task_label_service),
) -> TaskLabelIndexResponse:
    project, membership = access
    ensure(can_view_project(membership), "You are not authorized to view this project.")

    labels = await service.get_project_labels(project.id, name)
    return TaskLabelIndexResponse(
        project=ProjectSummaryResponse.model_validate(project),
        labels=[TaskLabelResponse.model_validate(label) for label in labels],
        query_params={"name": name} if name else {},
        can_manage_labels=can_manage_labels(membership),
    )


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@router.get(
    "/projects/{project_id}/labels/create",
    response_model=TaskLabelFormResponse,
    summary="Data for the label creation form",
)
async def create_label_form(
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
) -> TaskLabelFormResponse:
    project, membership = access
    _require_manager(membership)
    return TaskLabelFormResponse(project=ProjectSummaryResponse.model_validate(project))


@router.post(
    "/projects/{project_id}/labels",
    response_model=TaskLabelMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project label",
)
async def store_label(
    data: TaskLabelCreateRequest,
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
    service: TaskLabelService = Depends(get_task_label_service),
) -> TaskLabelMessageResponse:
    project, membership = access
    _require_manager(membership)

    label = await service.store_label(project.id, data)
    return TaskLabelMessageResponse(
        message=f"Label '{label.name}' created successfully.",
        label=TaskLabelResponse.model_validate(label),
    )


# ---------------------------------------------------------------------------
# Edit / Update
# ---------------------------------------------------------------------------

@router.get(
    "/projects/{project_id}/labels/{label_id}/edit",
    response_model=TaskLabelFormResponse,
    summary="Data for the label edit form",
)
async def edit_label_form(
    label_id: UUID,
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
    service: TaskLabelService = Depends(get_task_label_service),
) -> TaskLabelFormResponse:
    project, membership = access
    label = await service.get_label(project.id, label_id)
    ensure(not is_default_label(label), "Cannot edit default labels", code="DEFAULT_LABEL")
    _require_manager(membership)

    return TaskLabelFormResponse(
        project=ProjectSummaryResponse.model_validate(project),
        label=TaskLabelResponse.model_validate(label),
    )


@router.patch(
    "/projects/{project_id}/labels/{label_id}",
    response_model=TaskLabelMessageResponse,
    summary="Update a project label",
)
async def update_label(
    label_id: UUID,
    data: TaskLabelUpdateRequest,
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
    service: TaskLabelService = Depends(get_task_label_service),
) -> TaskLabelMessageResponse:
    project, membership = access
    label = await service.get_label(project.id, label_id)
    ensure(not is_default_label(label), "Cannot edit default labels", code="DEFAULT_LABEL")
    _require_manager(membership)

    label = await service.update_label(label, data)
    return TaskLabelMessageResponse(
        message=f"Label '{label.name}' updated successfully.",
        label=TaskLabelResponse.model_validate(label),
    )


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@router.delete(
    "/projects/{project_id}/labels/{label_id}",
    response_model=TaskLabelMessageResponse,
    summary="Delete a project label",
)
async def delete_label(
    label_id: UUID,
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
    service: TaskLabelService = Depends(get_task_label_service),
) -> TaskLabelMessageResponse:
    project, membership = access
    label = await service.get_label(project.id, label_id)
    ensure(not is_default_label(label), "Cannot delete default labels", code="DEFAULT_LABEL")
    _require_manager(membership)

    name = label.name
    await service.delete_label(label)
    return TaskLabelMessageResponse(message=f"Label '{name}' deleted successfully.")

"""
Task management endpoints.

Listings, the create/edit forms, CRUD, assignment, images, comments and
the per-project lookups the task forms call.

Static paths (``/tasks/mine``, ``/tasks/create``, ``/tasks/projects/...``)
must be registered before ``/tasks/{task_id}``.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.database import get_db
from taskhub.core.dependencies import get_current_user, get_project_access, load_membership
from taskhub.core.permissions import (
    can_be_assigned_by,
    can_be_unassigned_by,
    can_create_task,
    can_delete_task,
    can_edit_task,
    can_manage_task,
    can_view_project,
    ensure,
    is_project_member,
)
from taskhub.core.storage import Storage, get_storage, read_image_upload
from taskhub.models.project import Project
from taskhub.models.project_member import ProjectMember
from taskhub.models.task import Task
from taskhub.models.user import User
from taskhub.schemas.common import MessageResponse, ProjectSummaryResponse, UserSummaryResponse
from taskhub.schemas.task import (
    CommentCreateRequest,
    CommentResponse,
    ProjectUsersResponse,
    StatusOptionsResponse,
    TaskCreateFormResponse,
    TaskCreateRequest,
    TaskDetailResponse,
    TaskEditFormResponse,
    TaskFilters,
    TaskIndexResponse,
    TaskMessageResponse,
    TaskUpdateRequest,
)
from taskhub.routers.task_labels import get_task_label_service
from taskhub.schemas.task_label import TaskLabelCollection, TaskLabelResponse
from taskhub.services.task_label_service import TaskLabelService
from taskhub.services.task_service import TaskService

router = APIRouter()


def get_task_service(
    db: AsyncSession = Depends(get_db),
    storage: Storage = Depends(get_storage),
) -> TaskService:
    return TaskService(db=db, storage=storage)


async def get_task_access(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> tuple[Task, ProjectMember | None]:
    """Resolve the task from the path and the current user's membership in its project."""
    task = await service.get_task(task_id)
    membership = await load_membership(db, task.project_id, current_user.id)
    return task, membership


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

@router.get(
    "/tasks",
    response_model=TaskIndexResponse,
    summary="List tasks across the user's projects",
)
async def list_tasks(
    request: Request,
    filters: Annotated[TaskFilters, Query()],
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskIndexResponse:
    page = await service.get_tasks(current_user, filters)
    return TaskIndexResponse(
        tasks=page,
        query_params=dict(request.query_params) or None,
        options=await service.get_options(current_user),
        permissions={"can_manage_tasks": page.can_manage_tasks},
    )


@router.get(
    "/tasks/mine",
    response_model=TaskIndexResponse,
    summary="List tasks assigned to the current user",
)
async def list_my_tasks(
    request: Request,
    filters: Annotated[TaskFilters, Query()],
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskIndexResponse:
    page = await service.get_my_tasks(current_user, filters)
    return TaskIndexResponse(
        tasks=page,
        query_params=dict(request.query_params) or None,
        options=await service.get_options(current_user),
        permissions={"can_manage_tasks": page.can_manage_tasks},
    )


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@router.get(
    "/tasks/create",
    response_model=TaskCreateFormResponse,
    summary="Data for the task creation form",
)
async def create_task_form(
    project_id: UUID | None = Query(default=None),
    status_id: UUID | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
    label_service: TaskLabelService = Depends(get_task_label_service),
) -> TaskCreateFormResponse:
    """
    Everything the creation form needs.

    When opened from a project page the form is pre-scoped to that project:
    plain members may then only assign the task to themselves.
    """
    users: list[User] = []
    can_assign_others = True
    if project_id is not None:
        project = await service.get_project(project_id)
        membership = await load_membership(db, project.id, current_user.id)
        ensure(can_create_task(membership), "You cannot create tasks for this project.")
        users = await service.get_project_users(project.id, current_user, membership)
        can_assign_others = not is_project_member(membership)

    projects = await service.get_accessible_projects(current_user)
    labels = await label_service.get_project_labels(project_id)

    return TaskCreateFormResponse(
        projects=[ProjectSummaryResponse.model_validate(p) for p in projects],
        users=[UserSummaryResponse.model_validate(u) for u in users],
        labels=[TaskLabelResponse.model_validate(label) for label in labels],
        can_assign_others=can_assign_others,
        current_user_id=current_user.id,
        status_options=await service.get_status_options(project_id),
        selected_project_id=project_id,
        selected_status_id=status_id,
        from_project_page=project_id is not None,
    )


@router.post(
    "/tasks",
    response_model=TaskMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new task",
)
async def store_task(
    data: TaskCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> TaskMessageResponse:
    project = await service.get_project(data.project_id)
    membership = await load_membership(db, project.id, current_user.id)
    ensure(can_create_task(membership), "You cannot create tasks for this project.")

    task = await service.store_task(current_user, membership, data)
    return TaskMessageResponse(
        message="Task created successfully.",
        task=service.to_response(task, current_user.id, membership),
    )


# ---------------------------------------------------------------------------
# Project lookups
# ---------------------------------------------------------------------------

@router.get(
    "/tasks/projects/{project_id}/statuses",
    response_model=StatusOptionsResponse,
    summary="Statuses available in a project",
)
async def get_project_statuses(
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
    service: TaskService = Depends(get_task_service),
) -> StatusOptionsResponse:
    project, membership = access
    ensure(can_view_project(membership), "You are not authorized to view this project.")
    return StatusOptionsResponse(status_options=await service.get_status_options(project.id))


@router.get(
    "/tasks/projects/{project_id}/labels",
    response_model=TaskLabelCollection,
    summary="Labels available in a project",
)
async def get_project_labels(
    query: str | None = Query(default=None, max_length=50),
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
    label_service: TaskLabelService = Depends(get_task_label_service),
) -> TaskLabelCollection:
    """Global labels plus the project's own, optionally filtered by name."""
    project, membership = access
    ensure(can_view_project(membership), "You are not authorized to view this project.")

    labels = await label_service.get_project_labels(project.id, query)
    return TaskLabelCollection(labels=[TaskLabelResponse.model_validate(label) for label in labels])


@router.get(
    "/tasks/projects/{project_id}/users",
    response_model=ProjectUsersResponse,
    summary="Users a task in this project can be assigned to",
)
async def get_project_users(
    access: tuple[Project, ProjectMember | None] = Depends(get_project_access),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> ProjectUsersResponse:
    project, membership = access
    ensure(can_view_project(membership), "You are not authorized to view project users.")

    users = await service.get_project_users(project.id, current_user, membership)
    return ProjectUsersResponse(users=[UserSummaryResponse.model_validate(u) for u in users])


# ---------------------------------------------------------------------------
# Show / Edit
# ---------------------------------------------------------------------------

@router.get(
    "/tasks/{task_id}",
    response_model=TaskDetailResponse,
    summary="Get task detail with comments",
)
async def show_task(
    access: tuple[Task, ProjectMember | None] = Depends(get_task_access),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    task, membership = access
    ensure(can_view_project(membership), "You are not authorized to view this task.")
    return service.get_task_detail(task, current_user.id, membership)


@router.get(
    "/tasks/{task_id}/edit",
    response_model=TaskEditFormResponse,
    summary="Data for the task edit form",
)
async def edit_task_form(
    access: tuple[Task, ProjectMember | None] = Depends(get_task_access),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
    label_service: TaskLabelService = Depends(get_task_label_service),
) -> TaskEditFormResponse:
    task, membership = access
    ensure(
        can_edit_task(current_user.id, membership, task),
        "You are not authorized to edit this task.",
    )

    users = await service.get_project_users(task.project_id, current_user, membership)
    labels = await label_service.get_project_labels(task.project_id)

    return TaskEditFormResponse(
        task=service.to_response(task, current_user.id, membership),
        projects=[ProjectSummaryResponse.model_validate(task.project)],
        users=[UserSummaryResponse.model_validate(u) for u in users],
        labels=[TaskLabelResponse.model_validate(label) for label in labels],
        can_change_assignee=can_manage_task(membership),
        status_options=await service.get_status_options(task.project_id),
    )


# ---------------------------------------------------------------------------
# Update / Delete
# ---------------------------------------------------------------------------

@router.patch(
    "/tasks/{task_id}",
    response_model=TaskMessageResponse,
    summary="Update a task",
)
async def update_task(
    data: TaskUpdateRequest,
    access: tuple[Task, ProjectMember | None] = Depends(get_task_access),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskMessageResponse:
    """
    Update a task. Managers and the assignee may edit.

    Only managers can change the assignee; for anyone else the field is
    ignored and the rest of the update still applies.
    """
    task, membership = access
    ensure(
        can_edit_task(current_user.id, membership, task),
        "You are not authorized to edit this task.",
    )

    task = await service.update_task(task, current_user, membership, data)
    return TaskMessageResponse(
        message=f"Task '{task.name}' updated successfully.",
        task=service.to_response(task, current_user.id, membership),
    )


@router.delete(
    "/tasks/{task_id}",
    response_model=TaskMessageResponse,
    summary="Delete a task",
)
async def delete_task(
    access: tuple[Task, ProjectMember | None] = Depends(get_task_access),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskMessageResponse:
    task, membership = access
    ensure(
        can_delete_task(current_user.id, membership, task),
        "You are not authorized to delete this task.",
    )

    name = task.name
    await service.delete_task(task)
    return TaskMessageResponse(message=f"Task '{name}' deleted successfully.")


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------

@router.post(
    "/tasks/{task_id}/assign-to-me",
    response_model=TaskMessageResponse,
    summary="Assign the task to the current user",
)
async def assign_to_me(
    access: tuple[Task, ProjectMember | None] = Depends(get_task_access),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskMessageResponse:
    task, membership = access
    ensure(
        can_be_assigned_by(current_user.id, membership, task),
        "You cannot assign this task.",
    )

    task = await service.assign_to(task, current_user)
    return TaskMessageResponse(
        message="Task assigned successfully.",
        task=service.to_response(task, current_user.id, membership),
    )


@router.post(
    "/tasks/{task_id}/unassign",
    response_model=TaskMessageResponse,
    summary="Clear the task's assignee",
)
async def unassign(
    access: tuple[Task, ProjectMember | None] = Depends(get_task_access),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskMessageResponse:
    task, membership = access
    ensure(
        can_be_unassigned_by(current_user.id, membership, task),
        "You cannot unassign this task.",
    )

    task = await service.unassign(task, current_user)
    return TaskMessageResponse(
        message="Task unassigned successfully.",
        task=service.to_response(task, current_user.id, membership),
    )


# ---------------------------------------------------------------------------
# Image
# ---------------------------------------------------------------------------

@router.put(
    "/tasks/{task_id}/image",
    response_model=TaskMessageResponse,
    summary="Upload or replace the task image",
)
async def upload_image(
    image: UploadFile = File(...),
    access: tuple[Task, ProjectMember | None] = Depends(get_task_access),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskMessageResponse:
    task, membership = access
    ensure(
        can_edit_task(current_user.id, membership, task),
        "You are not authorized to edit this task.",
    )

    data, extension = await read_image_upload(image)
    task = await service.store_image(task, current_user, data, extension)
    return TaskMessageResponse(
        message="Task image updated successfully.",
        task=service.to_response(task, current_user.id, membership),
    )


@router.delete(
    "/tasks/{task_id}/image",
    response_model=TaskMessageResponse,
    summary="Delete the task image",
)
async def delete_image(
    access: tuple[Task, ProjectMember | None] = Depends(get_task_access),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskMessageResponse:
    task, membership = access
    ensure(
        can_edit_task(current_user.id, membership, task),
        "You are not authorized to delete this task's image.",
    )

    task = await service.delete_image(task)
    return TaskMessageResponse(
        message="Task image deleted successfully.",
        task=service.to_response(task, current_user.id, membership),
    )


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

@router.post(
    "/tasks/{task_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a task",
)
async def add_comment(
    data: CommentCreateRequest,
    access: tuple[Task, ProjectMember | None] = Depends(get_task_access),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> CommentResponse:
    task, membership = access
    ensure(can_view_project(membership), "You are not authorized to comment on this task.")
    return await service.add_comment(task, current_user, data.body)


@router.delete(
    "/tasks/{task_id}/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete a comment",
)
async def delete_comment(
    comment_id: UUID,
    access: tuple[Task, ProjectMember | None] = Depends(get_task_access),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> MessageResponse:
    task, membership = access
    comment = await service.get_comment(task, comment_id)
    ensure(
        comment.user_id == current_user.id or can_manage_task(membership),
        "You are not authorized to delete this comment.",
    )

    await service.delete_comment(comment)
    return MessageResponse(message="Comment deleted successfully.")

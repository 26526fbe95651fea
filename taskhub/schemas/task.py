"""
Task schemas.

Request/response models for task CRUD, the task forms, listings and
comments.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from taskhub.core.config import settings
from taskhub.models.task import TaskPriority
from taskhub.schemas.common import OptionItem, ProjectSummaryResponse, UserSummaryResponse
from taskhub.schemas.task_label import TaskLabelResponse

SortField = Literal["created_at", "name", "due_date", "priority", "status"]
SortDirection = Literal["asc", "desc"]


# ---------------------------------------------------------------------------
# Task Create / Update
# ---------------------------------------------------------------------------

class TaskCreateRequest(BaseModel):
    """Request body for POST /tasks."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    project_id: UUID
    assigned_user_id: UUID | None = None
    status_id: UUID | None = None
    priority: TaskPriority = TaskPriority.medium
    due_date: date | None = None
    label_ids: list[UUID] = Field(default_factory=list)


class TaskUpdateRequest(BaseModel):
    """Request body for PATCH /tasks/{task_id}. Only sent fields change."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status_id: UUID | None = None
    assigned_user_id: UUID | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None
    label_ids: list[UUID] | None = None


# ---------------------------------------------------------------------------
# Listing filters
# ---------------------------------------------------------------------------

class TaskFilters(BaseModel):
    """Query parameters accepted by the task listings."""

    name: str | None = Field(default=None, max_length=200)
    status: str | None = Field(default=None, max_length=100)
    status_id: UUID | None = None
    project_id: UUID | None = None
    label_id: UUID | None = None
    priority: TaskPriority | None = None
    sort_field: SortField = "created_at"
    sort_direction: SortDirection = "desc"
    skip: int = Field(default=0, ge=0)
    limit: int = Field(default=settings.TASKS_PER_PAGE, ge=1, le=100)


# ---------------------------------------------------------------------------
# Nested response objects
# ---------------------------------------------------------------------------

class StatusSummaryResponse(BaseModel):
    """Compact status info embedded in task responses."""

    id: UUID
    name: str
    color: str | None
    position: int

    model_config = {"from_attributes": True}


class TaskPermissions(BaseModel):
    can_edit: bool
    can_delete: bool
    can_assign_to_me: bool
    can_unassign: bool
    can_manage: bool


class TaskResponse(BaseModel):
    """Task representation shared by list, detail and form payloads."""

    id: UUID
    name: str
    description: str | None
    project: ProjectSummaryResponse
    status: StatusSummaryResponse
    assigned_user: UserSummaryResponse | None
    priority: TaskPriority
    due_date: date | None
    image_url: str | None
    labels: list[TaskLabelResponse] = Field(default_factory=list)
    created_by: UUID | None
    updated_by: UUID | None
    created_at: datetime
    updated_at: datetime
    permissions: TaskPermissions


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

class TaskFilterOptions(BaseModel):
    label_options: list[TaskLabelResponse]
    project_options: list[ProjectSummaryResponse]
    status_options: list[OptionItem]


class TaskPage(BaseModel):
    tasks: list[TaskResponse]
    total: int
    skip: int
    limit: int
    can_manage_tasks: bool | None = Field(
        default=None,
        description="True when the user manages every project on this page; null for an empty page",
    )


class TaskIndexResponse(BaseModel):
    """Response for GET /tasks and GET /tasks/mine."""

    tasks: TaskPage
    query_params: dict[str, str] | None
    options: TaskFilterOptions
    permissions: dict[str, bool | None]


# ---------------------------------------------------------------------------
# Detail / comments
# ---------------------------------------------------------------------------

class CommentCreateRequest(BaseModel):
    """Request body for POST /tasks/{task_id}/comments."""

    body: str = Field(min_length=1, max_length=5000)


class CommentResponse(BaseModel):
    id: UUID
    task_id: UUID
    body: str
    user: UserSummaryResponse
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskDetailResponse(BaseModel):
    """Response for GET /tasks/{task_id}."""

    task: TaskResponse
    comments: list[CommentResponse]


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------

class TaskCreateFormResponse(BaseModel):
    """Everything the task creation form needs."""

    projects: list[ProjectSummaryResponse]
    users: list[UserSummaryResponse]
    labels: list[TaskLabelResponse]
    can_assign_others: bool
    current_user_id: UUID
    status_options: list[StatusSummaryResponse]
    selected_project_id: UUID | None
    selected_status_id: UUID | None
    from_project_page: bool


class TaskEditFormResponse(BaseModel):
    task: TaskResponse
    projects: list[ProjectSummaryResponse]
    users: list[UserSummaryResponse]
    labels: list[TaskLabelResponse]
    can_change_assignee: bool
    status_options: list[StatusSummaryResponse]


# ---------------------------------------------------------------------------
# Mutations / lookups
# ---------------------------------------------------------------------------

class TaskMessageResponse(BaseModel):
    message: str
    task: TaskResponse | None = None


class StatusOptionsResponse(BaseModel):
    status_options: list[StatusSummaryResponse]


class ProjectUsersResponse(BaseModel):
    users: list[UserSummaryResponse]

"""
Task label schemas.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field

from taskhub.schemas.common import ProjectSummaryResponse

HEX_COLOR = r"^#[0-9a-fA-F]{6}$"


class TaskLabelCreateRequest(BaseModel):
    """Request body for POST /projects/{project_id}/labels."""

    name: str = Field(min_length=1, max_length=50)
    color: str = Field(default="#6366f1", pattern=HEX_COLOR)


class TaskLabelUpdateRequest(BaseModel):
    """Request body for PATCH /projects/{project_id}/labels/{label_id}."""

    name: str | None = Field(default=None, min_length=1, max_length=50)
    color: str | None = Field(default=None, pattern=HEX_COLOR)


class TaskLabelResponse(BaseModel):
    id: UUID
    name: str
    color: str
    project_id: UUID | None
    is_default: bool

    model_config = {"from_attributes": True}


class TaskLabelCollection(BaseModel):
    labels: list[TaskLabelResponse]


class TaskLabelIndexResponse(BaseModel):
    project: ProjectSummaryResponse
    labels: list[TaskLabelResponse]
    query_params: dict[str, str]
    can_manage_labels: bool


class TaskLabelFormResponse(BaseModel):
    """Payload for the label create/edit forms."""

    project: ProjectSummaryResponse
    label: TaskLabelResponse | None = None


class TaskLabelMessageResponse(BaseModel):
    message: str
    label: TaskLabelResponse | None = None

"""
Small response objects shared by several routers.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel


class OptionItem(BaseModel):
    """A value/label pair for select inputs."""

    value: str
    label: str


class UserSummaryResponse(BaseModel):
    """Compact user info embedded in other responses."""

    id: UUID
    name: str
    email: str

    model_config = {"from_attributes": True}


class ProjectSummaryResponse(BaseModel):
    id: UUID
    name: str

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    """Success message for mutations that have nothing else to return."""

    message: str

"""
Task label business logic.

A project's label set is the union of the global default labels
(``project_id IS NULL``) and the project's own labels. Only project labels
are ever mutated here; callers reject global labels before getting this far.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.core.exceptions import field_error, not_found
from taskhub.models.task_label import TaskLabel
from taskhub.schemas.task_label import TaskLabelCreateRequest, TaskLabelUpdateRequest

logger = logging.getLogger(__name__)


class TaskLabelService:
    """Handles all task label operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Listing
    # -----------------------------------------------------------------------

    async def get_project_labels(
        self, project_id: UUID | None, name: str | None = None
    ) -> list[TaskLabel]:
        """
        Global and project labels, optionally narrowed by a name substring.

        With no project only the global labels are returned.
        """
        stmt = select(TaskLabel).where(
            or_(TaskLabel.project_id.is_(None), TaskLabel.project_id == project_id)
        )
        if name:
            stmt = stmt.where(func.lower(TaskLabel.name).contains(name.lower(), autoescape=True))

        result = await self.db.scalars(stmt.order_by(TaskLabel.name.asc()))
        return list(result.all())

    async def get_label(self, project_id: UUID, label_id: UUID) -> TaskLabel:
        """
        Fetch a label visible from the project.

        Global labels resolve from any project; another project's label is a 404.
        """
        label = await self.db.scalar(
            select(TaskLabel)
            .where(TaskLabel.id == label_id)
            .options(selectinload(TaskLabel.tasks))
        )
        if label is None or (label.project_id is not None and label.project_id != project_id):
            raise not_found("LABEL_NOT_FOUND", "Label not found")
        return label

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    async def store_label(self, project_id: UUID, data: TaskLabelCreateRequest) -> TaskLabel:
        await self._ensure_unique_name(project_id, data.name)

        label = TaskLabel(project_id=project_id, name=data.name, color=data.color)
        self.db.add(label)
        await self.db.flush()
        logger.info("Created label %r in project_id=%s", label.name, project_id)
        return label

    async def update_label(self, label: TaskLabel, data: TaskLabelUpdateRequest) -> TaskLabel:
        updates = data.model_dump(exclude_unset=True, exclude_none=True)

        if "name" in updates and updates["name"] != label.name:
            await self._ensure_unique_name(label.project_id, updates["name"], exclude_id=label.id)

        for field, value in updates.items():
            setattr(label, field, value)

        await self.db.flush()
        logger.info("Updated label id=%s", label.id)
        return label

    async def delete_label(self, label: TaskLabel) -> None:
        await self.db.delete(label)
        await self.db.flush()
        logger.info("Deleted label %r from project_id=%s", label.name, label.project_id)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _ensure_unique_name(
        self, project_id: UUID | None, name: str, exclude_id: UUID | None = None
    ) -> None:
        # global labels share every project's listing, so their names are reserved too
        stmt = select(TaskLabel.id).where(
            or_(TaskLabel.project_id.is_(None), TaskLabel.project_id == project_id),
            func.lower(TaskLabel.name) == name.lower(),
        )
        if exclude_id is not None:
            stmt = stmt.where(TaskLabel.id != exclude_id)
        if await self.db.scalar(stmt) is not None:
            raise field_error("name", "The name has already been taken.")

"""
Task business logic.

Handles task listings, CRUD, assignment, images and comments. Listings are
scoped to projects where the user holds an accepted membership; capability
checks happen in the routers before any method here mutates anything.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import Select, and_, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.core.exceptions import field_error, not_found
from taskhub.core.permissions import can_manage_task, is_project_member, task_capabilities
from taskhub.core.storage import Storage, image_key
from taskhub.models.project import Project
from taskhub.models.project_member import InvitationStatus, ProjectMember
from taskhub.models.task import Task, TaskPriority
from taskhub.models.task_comment import TaskComment
from taskhub.models.task_label import TaskLabel
from taskhub.models.task_status import TaskStatus
from taskhub.models.user import User
from taskhub.schemas.common import OptionItem, ProjectSummaryResponse, UserSummaryResponse
from taskhub.schemas.task import (
    CommentResponse,
    StatusSummaryResponse,
    TaskCreateRequest,
    TaskDetailResponse,
    TaskFilterOptions,
    TaskFilters,
    TaskPage,
    TaskPermissions,
    TaskResponse,
    TaskUpdateRequest,
)
from taskhub.schemas.task_label import TaskLabelResponse

logger = logging.getLogger(__name__)

PRIORITY_RANK = {TaskPriority.low: 1, TaskPriority.medium: 2, TaskPriority.high: 3}


def _accepted_project_ids(user_id: UUID) -> Select:
    return select(ProjectMember.project_id).where(
        ProjectMember.user_id == user_id,
        ProjectMember.status == InvitationStatus.accepted,
    )


class TaskService:
    """Handles all task operations."""

    def __init__(self, db: AsyncSession, storage: Storage) -> None:
        self.db = db
        self.storage = storage

    # -----------------------------------------------------------------------
    # List Tasks
    # -----------------------------------------------------------------------

    async def get_tasks(self, user: User, filters: TaskFilters) -> TaskPage:
        """Tasks in every project where the user is an accepted member."""
        stmt = select(Task).where(Task.project_id.in_(_accepted_project_ids(user.id)))
        return await self._paginate(user, stmt, filters)

    async def get_my_tasks(self, user: User, filters: TaskFilters) -> TaskPage:
        """Same as ``get_tasks`` but only tasks assigned to the user."""
        stmt = select(Task).where(
            Task.project_id.in_(_accepted_project_ids(user.id)),
            Task.assigned_user_id == user.id,
        )
        return await self._paginate(user, stmt, filters)

    async def _paginate(self, user: User, stmt: Select, filters: TaskFilters) -> TaskPage:
        stmt = stmt.join(TaskStatus, Task.status_id == TaskStatus.id)

        if filters.name:
            stmt = stmt.where(func.lower(Task.name).contains(filters.name.lower(), autoescape=True))
        if filters.status:
            stmt = stmt.where(TaskStatus.name == filters.status)
        if filters.status_id is not None:
            stmt = stmt.where(Task.status_id == filters.status_id)
        if filters.project_id is not None:
            stmt = stmt.where(Task.project_id == filters.project_id)
        if filters.label_id is not None:
            stmt = stmt.where(Task.labels.any(TaskLabel.id == filters.label_id))
        if filters.priority is not None:
            stmt = stmt.where(Task.priority == filters.priority)

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery()))

        sort_columns = {
            "created_at": Task.created_at,
            "name": Task.name,
            "due_date": Task.due_date,
            "priority": case(PRIORITY_RANK, value=Task.priority, else_=0),
            "status": TaskStatus.position,
        }
        column = sort_columns[filters.sort_field]
        order = column.asc() if filters.sort_direction == "asc" else column.desc()

        result = await self.db.scalars(
            stmt.options(*self._task_load_options())
            .order_by(order, Task.id)
            .offset(filters.skip)
            .limit(filters.limit)
        )
        tasks = list(result.unique().all())

        memberships = await self._memberships_by_project(
            user.id, {task.project_id for task in tasks}
        )
        can_manage_tasks = None
        if tasks:
            can_manage_tasks = all(
                can_manage_task(memberships.get(project_id))
                for project_id in {task.project_id for task in tasks}
            )

        return TaskPage(
            tasks=[self.to_response(t, user.id, memberships.get(t.project_id)) for t in tasks],
            total=total or 0,
            skip=filters.skip,
            limit=filters.limit,
            can_manage_tasks=can_manage_tasks,
        )

    # -----------------------------------------------------------------------
    # Options
    # -----------------------------------------------------------------------

    async def get_options(self, user: User) -> TaskFilterOptions:
        """Filter choices limited to what the user can see."""
        accessible = _accepted_project_ids(user.id)

        labels = await self.db.scalars(
            select(TaskLabel)
            .where(or_(TaskLabel.project_id.is_(None), TaskLabel.project_id.in_(accessible)))
            .order_by(TaskLabel.name.asc())
        )
        projects = await self.get_accessible_projects(user)
        status_names = await self.db.scalars(
            select(TaskStatus.name)
            .where(or_(TaskStatus.project_id.is_(None), TaskStatus.project_id.in_(accessible)))
            .distinct()
            .order_by(TaskStatus.name.asc())
        )

        return TaskFilterOptions(
            label_options=[TaskLabelResponse.model_validate(label) for label in labels.all()],
            project_options=[ProjectSummaryResponse.model_validate(p) for p in projects],
            status_options=[OptionItem(value=name, label=name) for name in status_names.all()],
        )

    async def get_accessible_projects(self, user: User) -> list[Project]:
        result = await self.db.scalars(
            select(Project)
            .where(Project.id.in_(_accepted_project_ids(user.id)))
            .order_by(Project.name.asc())
        )
        return list(result.all())

    async def get_status_options(self, project_id: UUID | None) -> list[StatusSummaryResponse]:
        """The project's statuses by position, or the global default set."""
        statuses: list[TaskStatus] = []
        if project_id is not None:
            statuses = await self._statuses_for(project_id)
        if not statuses:
            statuses = await self._statuses_for(None)
        return [StatusSummaryResponse.model_validate(s) for s in statuses]

    async def get_project_users(
        self, project_id: UUID, user: User, membership: ProjectMember | None
    ) -> list[User]:
        """Plain members only ever see themselves; managers see every accepted user."""
        if is_project_member(membership):
            return [user]

        result = await self.db.scalars(
            select(User)
            .join(ProjectMember, ProjectMember.user_id == User.id)
            .where(
                ProjectMember.project_id == project_id,
                ProjectMember.status == InvitationStatus.accepted,
            )
            .order_by(User.name.asc())
        )
        return list(result.all())

    # -----------------------------------------------------------------------
    # Get Task
    # -----------------------------------------------------------------------

    async def get_project(self, project_id: UUID) -> Project:
        project = await self.db.scalar(select(Project).where(Project.id == project_id))
        if project is None:
            raise not_found("PROJECT_NOT_FOUND", "Project not found")
        return project

    async def get_task(self, task_id: UUID) -> Task:
        """Load a task with everything its responses need. Raises 404."""
        task = await self.db.scalar(
            select(Task)
            .where(Task.id == task_id)
            .options(*self._task_load_options())
            .execution_options(populate_existing=True)
        )
        if task is None:
            raise not_found("TASK_NOT_FOUND", "Task not found")
        return task

    def get_task_detail(
        self, task: Task, user_id: UUID, membership: ProjectMember | None
    ) -> TaskDetailResponse:
        return TaskDetailResponse(
            task=self.to_response(task, user_id, membership),
            comments=[CommentResponse.model_validate(c) for c in task.comments],
        )

    # -----------------------------------------------------------------------
    # Create Task
    # -----------------------------------------------------------------------

    async def store_task(
        self, user: User, membership: ProjectMember | None, data: TaskCreateRequest
    ) -> Task:
        """
        Create a task in ``data.project_id``.

        A plain member assigning the task to someone else is quietly
        reassigned to themselves.
        """
        assigned_user_id = data.assigned_user_id
        if is_project_member(membership) and assigned_user_id is not None and assigned_user_id != user.id:
            logger.info(
                "Member user_id=%s assigned new task to user_id=%s; assigning to self",
                user.id,
                assigned_user_id,
            )
            assigned_user_id = user.id

        if data.status_id is not None:
            status_id = await self._validate_status(data.project_id, data.status_id)
        else:
            statuses = await self._statuses_for(data.project_id)
            if not statuses:
                raise field_error("status_id", "The status field is required.")
            status_id = statuses[0].id

        if assigned_user_id is not None:
            await self._validate_assignee(data.project_id, assigned_user_id)

        labels = await self._resolve_labels(data.project_id, data.label_ids)

        task = Task(
            project_id=data.project_id,
            name=data.name,
            description=data.description,
            status_id=status_id,
            assigned_user_id=assigned_user_id,
            priority=data.priority,
            due_date=data.due_date,
            labels=labels,
            created_by=user.id,
            updated_by=user.id,
        )
        self.db.add(task)
        await self.db.flush()
        logger.info("Created task id=%s in project_id=%s", task.id, task.project_id)

        return await self.get_task(task.id)

    # -----------------------------------------------------------------------
    # Update Task
    # -----------------------------------------------------------------------

    async def update_task(
        self,
        task: Task,
        user: User,
        membership: ProjectMember | None,
        data: TaskUpdateRequest,
    ) -> Task:
        """
        Apply the fields the caller sent.

        Without manage capability the assignee is dropped from the update;
        everything else still applies.
        """
        updates = data.model_dump(exclude_unset=True)

        if not can_manage_task(membership) and updates.pop("assigned_user_id", None) is not None:
            logger.info("Ignoring assignee change on task id=%s by user_id=%s", task.id, user.id)

        for field in ("name", "status_id", "priority", "label_ids"):
            if field in updates and updates[field] is None:
                del updates[field]

        if "status_id" in updates:
            await self._validate_status(task.project_id, updates["status_id"])
        if updates.get("assigned_user_id") is not None:
            await self._validate_assignee(task.project_id, updates["assigned_user_id"])
        if "label_ids" in updates:
            task.labels = await self._resolve_labels(task.project_id, updates.pop("label_ids"))

        for field, value in updates.items():
            setattr(task, field, value)
        task.updated_by = user.id

        await self.db.flush()
        logger.info("Updated task id=%s fields=%s", task.id, sorted(updates))

        return await self.get_task(task.id)

    # -----------------------------------------------------------------------
    # Delete Task
    # -----------------------------------------------------------------------

    async def delete_task(self, task: Task) -> None:
        if task.image_path:
            await self.storage.delete(task.image_path)

        await self.db.delete(task)
        await self.db.flush()
        logger.info("Deleted task id=%s from project_id=%s", task.id, task.project_id)

    # -----------------------------------------------------------------------
    # Assignment
    # -----------------------------------------------------------------------

    async def assign_to(self, task: Task, user: User) -> Task:
        task.assigned_user_id = user.id
        task.updated_by = user.id
        await self.db.flush()
        logger.info("Task id=%s assigned to user_id=%s", task.id, user.id)
        return await self.get_task(task.id)

    async def unassign(self, task: Task, user: User) -> Task:
        previous = task.assigned_user_id
        task.assigned_user_id = None
        task.updated_by = user.id
        await self.db.flush()
        logger.info("Task id=%s unassigned from user_id=%s", task.id, previous)
        return await self.get_task(task.id)

    # -----------------------------------------------------------------------
    # Images
    # -----------------------------------------------------------------------

    async def store_image(self, task: Task, user: User, data: bytes, extension: str) -> Task:
        """Save a new image for the task, replacing any previous one."""
        key = image_key(f"task_images/{task.id}", extension)
        await self.storage.put(key, data)

        if task.image_path:
            await self.storage.delete(task.image_path)

        task.image_path = key
        task.updated_by = user.id
        await self.db.flush()
        logger.info("Stored image for task id=%s at %s", task.id, key)
        return await self.get_task(task.id)

    async def delete_image(self, task: Task) -> Task:
        # The file goes first; a failed flush afterwards leaves a dangling path.
        if task.image_path:
            await self.storage.delete(task.image_path)
            logger.info("Deleted image for task id=%s", task.id)

        task.image_path = None
        await self.db.flush()
        return await self.get_task(task.id)

    # -----------------------------------------------------------------------
    # Comments
    # -----------------------------------------------------------------------

    async def add_comment(self, task: Task, user: User, body: str) -> CommentResponse:
        comment = TaskComment(task_id=task.id, user_id=user.id, body=body)
        self.db.add(comment)
        await self.db.flush()
        logger.info("Comment id=%s added to task id=%s", comment.id, task.id)

        comment = await self.db.scalar(
            select(TaskComment)
            .where(TaskComment.id == comment.id)
            .options(selectinload(TaskComment.user))
            .execution_options(populate_existing=True)
        )
        return CommentResponse.model_validate(comment)

    async def get_comment(self, task: Task, comment_id: UUID) -> TaskComment:
        comment = await self.db.scalar(
            select(TaskComment).where(
                TaskComment.id == comment_id,
                TaskComment.task_id == task.id,
            )
        )
        if comment is None:
            raise not_found("COMMENT_NOT_FOUND", "Comment not found")
        return comment

    async def delete_comment(self, comment: TaskComment) -> None:
        await self.db.delete(comment)
        await self.db.flush()
        logger.info("Deleted comment id=%s from task id=%s", comment.id, comment.task_id)

    # -----------------------------------------------------------------------
    # Serialization
    # -----------------------------------------------------------------------

    def to_response(
        self, task: Task, user_id: UUID, membership: ProjectMember | None
    ) -> TaskResponse:
        return TaskResponse(
            id=task.id,
            name=task.name,
            description=task.description,
            project=ProjectSummaryResponse.model_validate(task.project),
            status=StatusSummaryResponse.model_validate(task.status),
            assigned_user=(
                UserSummaryResponse.model_validate(task.assigned_user)
                if task.assigned_user is not None
                else None
            ),
            priority=task.priority,
            due_date=task.due_date,
            image_url=self.storage.url(task.image_path) if task.image_path else None,
            labels=[
                TaskLabelResponse.model_validate(label)
                for label in sorted(task.labels, key=lambda label: label.name)
            ],
            created_by=task.created_by,
            updated_by=task.updated_by,
            created_at=task.created_at,
            updated_at=task.updated_at,
            permissions=TaskPermissions(**task_capabilities(user_id, membership, task)),
        )

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _task_load_options() -> list:
        return [
            selectinload(Task.project),
            selectinload(Task.status),
            selectinload(Task.assigned_user),
            selectinload(Task.labels),
            selectinload(Task.comments).selectinload(TaskComment.user),
        ]

    async def _memberships_by_project(
        self, user_id: UUID, project_ids: set[UUID]
    ) -> dict[UUID, ProjectMember]:
        if not project_ids:
            return {}
        result = await self.db.scalars(
            select(ProjectMember).where(
                ProjectMember.user_id == user_id,
                ProjectMember.project_id.in_(project_ids),
            )
        )
        return {m.project_id: m for m in result.all()}

    async def _statuses_for(self, project_id: UUID | None) -> list[TaskStatus]:
        if project_id is None:
            condition = TaskStatus.project_id.is_(None)
        else:
            condition = TaskStatus.project_id == project_id
        result = await self.db.scalars(
            select(TaskStatus).where(condition).order_by(TaskStatus.position.asc())
        )
        return list(result.all())

    async def _validate_status(self, project_id: UUID, status_id: UUID) -> UUID:
        found = await self.db.scalar(
            select(TaskStatus.id).where(
                TaskStatus.id == status_id,
                TaskStatus.project_id == project_id,
            )
        )
        if found is None:
            raise field_error("status_id", "The selected status is invalid.")
        return status_id

    async def _validate_assignee(self, project_id: UUID, user_id: UUID) -> None:
        found = await self.db.scalar(
            select(ProjectMember.id).where(
                and_(
                    ProjectMember.project_id == project_id,
                    ProjectMember.user_id == user_id,
                    ProjectMember.status == InvitationStatus.accepted,
                )
            )
        )
        if found is None:
            raise field_error(
                "assigned_user_id",
                "The selected assignee is not a member of this project.",
            )

    async def _resolve_labels(self, project_id: UUID, label_ids: list[UUID]) -> list[TaskLabel]:
        """Labels must be global or belong to the task's project."""
        wanted = set(label_ids)
        if not wanted:
            return []

        result = await self.db.scalars(
            select(TaskLabel).where(
                TaskLabel.id.in_(wanted),
                or_(TaskLabel.project_id.is_(None), TaskLabel.project_id == project_id),
            )
        )
        labels = list(result.all())
        if len(labels) != len(wanted):
            raise field_error("label_ids", "The selected labels are invalid.")
        return labels

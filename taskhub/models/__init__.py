"""
SQLAlchemy ORM models.

All models imported here to ensure they are registered with Base.metadata.
Import order matters: base models before dependent models.
"""

from taskhub.models.base import AuditMixin, Base, TimestampMixin, UUIDMixin
from taskhub.models.user import User
from taskhub.models.project import Project, ProjectStatus
from taskhub.models.project_member import InvitationStatus, ProjectMember, ProjectRole
from taskhub.models.task_status import DEFAULT_TASK_STATUSES, TaskStatus
from taskhub.models.task_label import TaskLabel, task_label_assignments
from taskhub.models.task import Task, TaskPriority
from taskhub.models.task_comment import TaskComment

__all__ = [
    "AuditMixin",
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "User",
    "Project",
    "ProjectStatus",
    "ProjectMember",
    "ProjectRole",
    "InvitationStatus",
    "TaskStatus",
    "DEFAULT_TASK_STATUSES",
    "TaskLabel",
    "task_label_assignments",
    "Task",
    "TaskPriority",
    "TaskComment",
]

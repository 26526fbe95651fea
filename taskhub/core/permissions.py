"""
Project capability rules.

Every predicate takes the acting user's id, the actor's membership row for
the project (or None when there is none) and, where relevant, the task.
Only an accepted membership grants anything; pending and declined rows are
treated exactly like no row at all.
"""

from __future__ import annotations

import logging
from uuid import UUID

from taskhub.core.exceptions import forbidden
from taskhub.models.project_member import InvitationStatus, ProjectMember, ProjectRole
from taskhub.models.task import Task
from taskhub.models.task_label import TaskLabel

logger = logging.getLogger(__name__)


def accepted_role(membership: ProjectMember | None) -> ProjectRole | None:
    """Role granted by the membership, or None unless the invitation was accepted."""
    if membership is None or membership.status != InvitationStatus.accepted:
        return None
    return membership.role


# ---------------------------------------------------------------------------
# Project-level
# ---------------------------------------------------------------------------

def can_view_project(membership: ProjectMember | None) -> bool:
    return accepted_role(membership) is not None


def is_project_member(membership: ProjectMember | None) -> bool:
    """True only for the plain member role; managers are not 'members' here."""
    return accepted_role(membership) == ProjectRole.member


def can_manage_task(membership: ProjectMember | None) -> bool:
    return accepted_role(membership) == ProjectRole.manager


def can_create_task(membership: ProjectMember | None) -> bool:
    return accepted_role(membership) in (ProjectRole.manager, ProjectRole.member)


def can_manage_labels(membership: ProjectMember | None) -> bool:
    return accepted_role(membership) == ProjectRole.manager


def can_invite(membership: ProjectMember | None) -> bool:
    return accepted_role(membership) == ProjectRole.manager


# ---------------------------------------------------------------------------
# Task-level
# ---------------------------------------------------------------------------

def can_edit_task(user_id: UUID, membership: ProjectMember | None, task: Task) -> bool:
    """Managers of the task's project and the task's assignee may edit."""
    manages = can_manage_task(membership) and membership.project_id == task.project_id
    return manages or task.assigned_user_id == user_id


def can_delete_task(user_id: UUID, membership: ProjectMember | None, task: Task) -> bool:
    # Same rule as editing: a task's assignee may delete it.
    return can_edit_task(user_id, membership, task)


def can_be_assigned_by(user_id: UUID, membership: ProjectMember | None, task: Task) -> bool:
    """
    Whether the actor may take the task ("assign to me").

    Managers may take any task, including one assigned to someone else.
    Members may only take tasks nobody holds yet.
    """
    role = accepted_role(membership)
    if role is None or membership.project_id != task.project_id:
        return False
    if task.assigned_user_id == user_id:
        return False
    if role == ProjectRole.manager:
        return True
    return task.assigned_user_id is None


def can_be_unassigned_by(user_id: UUID, membership: ProjectMember | None, task: Task) -> bool:
    """
    Whether the actor may clear the task's assignee.

    Managers may unassign anyone. Members may only drop their own tasks.
    """
    role = accepted_role(membership)
    if role is None or membership.project_id != task.project_id:
        return False
    if task.assigned_user_id is None:
        return False
    if role == ProjectRole.manager:
        return True
    return task.assigned_user_id == user_id


def task_capabilities(user_id: UUID, membership: ProjectMember | None, task: Task) -> dict[str, bool]:
    """All task predicates at once, for list and detail payloads."""
    return {
        "can_edit": can_edit_task(user_id, membership, task),
        "can_delete": can_delete_task(user_id, membership, task),
        "can_assign_to_me": can_be_assigned_by(user_id, membership, task),
        "can_unassign": can_be_unassigned_by(user_id, membership, task),
        "can_manage": can_manage_task(membership),
    }


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

def is_default_label(label: TaskLabel) -> bool:
    return label.project_id is None


# ---------------------------------------------------------------------------
# Enforcement
# ---------------------------------------------------------------------------

def ensure(allowed: bool, message: str, code: str = "FORBIDDEN") -> None:
    """Raise a 403 carrying ``message`` unless ``allowed``."""
    if not allowed:
        logger.warning("Authorization denied: %s", message)
        raise forbidden(message, code)

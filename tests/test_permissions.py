"""
Capability rule tests.

The predicates are pure functions over (user, membership, task), so these
build unsaved model instances instead of going through the API.
"""

import uuid

import pytest
from fastapi import HTTPException

from taskhub.core.permissions import (
    can_be_assigned_by,
    can_be_unassigned_by,
    can_create_task,
    can_delete_task,
    can_edit_task,
    can_manage_labels,
    can_manage_task,
    can_view_project,
    ensure,
    is_default_label,
    is_project_member,
    task_capabilities,
)
from taskhub.models.project_member import InvitationStatus, ProjectMember, ProjectRole
from taskhub.models.task import Task
from taskhub.models.task_label import TaskLabel

PROJECT_ID = uuid.uuid4()
USER_ID = uuid.uuid4()
SOMEONE_ELSE = uuid.uuid4()


def membership(
    role: ProjectRole,
    status: InvitationStatus = InvitationStatus.accepted,
    project_id: uuid.UUID = PROJECT_ID,
) -> ProjectMember:
    return ProjectMember(project_id=project_id, user_id=USER_ID, role=role, status=status)


def task(assigned_user_id: uuid.UUID | None = None, project_id: uuid.UUID = PROJECT_ID) -> Task:
    return Task(project_id=project_id, name="Ship it", assigned_user_id=assigned_user_id)


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "role, status, expected",
    [
        (ProjectRole.member, InvitationStatus.accepted, True),
        (ProjectRole.manager, InvitationStatus.accepted, False),
        (ProjectRole.member, InvitationStatus.pending, False),
        (ProjectRole.member, InvitationStatus.declined, False),
    ],
)
def test_is_project_member_only_for_accepted_member_role(role, status, expected):
    assert is_project_member(membership(role, status)) is expected


def test_no_membership_grants_nothing():
    assert not is_project_member(None)
    assert not can_manage_task(None)
    assert not can_create_task(None)
    assert not can_view_project(None)
    assert not can_manage_labels(None)


def test_pending_manager_cannot_manage():
    pending = membership(ProjectRole.manager, InvitationStatus.pending)
    assert not can_manage_task(pending)
    assert not can_view_project(pending)
    assert not can_manage_labels(pending)


def test_create_task_allowed_for_both_roles():
    assert can_create_task(membership(ProjectRole.manager))
    assert can_create_task(membership(ProjectRole.member))


# ---------------------------------------------------------------------------
# Edit / delete
# ---------------------------------------------------------------------------

def test_manager_can_edit_any_task_in_project():
    manager = membership(ProjectRole.manager)
    assert can_edit_task(USER_ID, manager, task(SOMEONE_ELSE))
    assert can_edit_task(USER_ID, manager, task(None))


def test_manager_of_other_project_cannot_edit():
    manager = membership(ProjectRole.manager, project_id=uuid.uuid4())
    assert not can_edit_task(USER_ID, manager, task(SOMEONE_ELSE))


def test_member_edits_only_own_tasks():
    member = membership(ProjectRole.member)
    assert can_edit_task(USER_ID, member, task(USER_ID))
    assert not can_edit_task(USER_ID, member, task(SOMEONE_ELSE))
    assert not can_edit_task(USER_ID, member, task(None))


def test_assignee_without_membership_can_still_edit():
    assert can_edit_task(USER_ID, None, task(USER_ID))


def test_delete_follows_edit_rule():
    member = membership(ProjectRole.member)
    assert can_delete_task(USER_ID, member, task(USER_ID))
    assert not can_delete_task(USER_ID, member, task(SOMEONE_ELSE))
    assert can_delete_task(USER_ID, membership(ProjectRole.manager), task(SOMEONE_ELSE))


# ---------------------------------------------------------------------------
# Assign / unassign
# ---------------------------------------------------------------------------

def test_member_can_take_unassigned_task_only():
    member = membership(ProjectRole.member)
    assert can_be_assigned_by(USER_ID, member, task(None))
    assert not can_be_assigned_by(USER_ID, member, task(SOMEONE_ELSE))


def test_manager_can_take_any_task():
    manager = membership(ProjectRole.manager)
    assert can_be_assigned_by(USER_ID, manager, task(None))
    assert can_be_assigned_by(USER_ID, manager, task(SOMEONE_ELSE))


def test_nobody_takes_a_task_they_already_hold():
    assert not can_be_assigned_by(USER_ID, membership(ProjectRole.manager), task(USER_ID))
    assert not can_be_assigned_by(USER_ID, membership(ProjectRole.member), task(USER_ID))


def test_assign_requires_accepted_membership():
    pending = membership(ProjectRole.member, InvitationStatus.pending)
    assert not can_be_assigned_by(USER_ID, pending, task(None))
    assert not can_be_assigned_by(USER_ID, None, task(None))


def test_unassign_rules():
    member = membership(ProjectRole.member)
    manager = membership(ProjectRole.manager)

    assert not can_be_unassigned_by(USER_ID, manager, task(None))
    assert can_be_unassigned_by(USER_ID, manager, task(SOMEONE_ELSE))
    assert can_be_unassigned_by(USER_ID, member, task(USER_ID))
    assert not can_be_unassigned_by(USER_ID, member, task(SOMEONE_ELSE))


def test_task_capabilities_bundle():
    caps = task_capabilities(USER_ID, membership(ProjectRole.member), task(None))
    assert caps == {
        "can_edit": False,
        "can_delete": False,
        "can_assign_to_me": True,
        "can_unassign": False,
        "can_manage": False,
    }


# ---------------------------------------------------------------------------
# Labels / enforcement
# ---------------------------------------------------------------------------

def test_default_label_has_no_project():
    assert is_default_label(TaskLabel(project_id=None, name="Bug"))
    assert not is_default_label(TaskLabel(project_id=PROJECT_ID, name="Backend"))


def test_ensure_raises_403_with_reason():
    ensure(True, "never raised")

    with pytest.raises(HTTPException) as exc_info:
        ensure(False, "You cannot assign this task.")

    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == {"code": "FORBIDDEN", "message": "You cannot assign this task."}

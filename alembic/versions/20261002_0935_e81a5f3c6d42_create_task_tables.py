"""create_task_tables

Revision ID: e81a5f3c6d42
Revises: 4b7d02c9e5f1
Create Date: 2026-10-02 09:35:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = 'e81a5f3c6d42'
down_revision: Union[str, None] = '4b7d02c9e5f1'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # project_id NULL marks the global default statuses and labels
    op.execute("""
        CREATE TABLE task_statuses (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID REFERENCES projects(id) ON DELETE CASCADE,
            name VARCHAR(100) NOT NULL,
            position INTEGER NOT NULL DEFAULT 0,
            color VARCHAR(7),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX idx_task_statuses_project_position ON task_statuses(project_id, position)")

    op.execute("""
        CREATE TABLE task_labels (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID REFERENCES projects(id) ON DELETE CASCADE,
            name VARCHAR(50) NOT NULL,
            color VARCHAR(7) NOT NULL DEFAULT '#6366f1',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE UNIQUE INDEX idx_task_labels_project_name ON task_labels(project_id, name)")
    op.execute("CREATE UNIQUE INDEX idx_task_labels_global_name ON task_labels(name) WHERE project_id IS NULL")

    op.execute("""
        CREATE TABLE tasks (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            name VARCHAR(255) NOT NULL,
            description TEXT,
            status_id UUID NOT NULL REFERENCES task_statuses(id) ON DELETE RESTRICT,
            assigned_user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            priority VARCHAR(20) NOT NULL DEFAULT 'medium'
                CHECK (priority IN ('low', 'medium', 'high')),
            due_date DATE,
            image_path VARCHAR(500),
            created_by UUID REFERENCES users(id) ON DELETE SET NULL,
            updated_by UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX idx_tasks_project_id ON tasks(project_id)")
    op.execute("CREATE INDEX idx_tasks_project_status ON tasks(project_id, status_id)")
    op.execute("CREATE INDEX idx_tasks_assignee ON tasks(assigned_user_id) WHERE assigned_user_id IS NOT NULL")
    op.execute("CREATE INDEX idx_tasks_created_at ON tasks(created_at)")

    op.execute("""
        CREATE TABLE task_label_assignments (
            task_id UUID NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
            task_label_id UUID NOT NULL REFERENCES task_labels(id) ON DELETE CASCADE,
            PRIMARY KEY (task_id, task_label_id)
        )
    """)
    op.execute("CREATE INDEX idx_task_label_assignments_label ON task_label_assignments(task_label_id)")

    op.execute("""
        CREATE TABLE task_comments (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            task_id UUID NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            body TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX idx_task_comments_task_created ON task_comments(task_id, created_at)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS task_comments")
    op.execute("DROP TABLE IF EXISTS task_label_assignments")
    op.execute("DROP TABLE IF EXISTS tasks")
    op.execute("DROP TABLE IF EXISTS task_labels")
    op.execute("DROP TABLE IF EXISTS task_statuses")

"""seed_default_statuses_and_labels

Revision ID: 7a0f93b2c1d8
Revises: e81a5f3c6d42
Create Date: 2026-10-02 09:50:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = '7a0f93b2c1d8'
down_revision: Union[str, None] = 'e81a5f3c6d42'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # New projects copy these rows; see ProjectService.create_project
    op.execute("""
        INSERT INTO task_statuses (id, project_id, name, position, color)
        VALUES
            (gen_random_uuid(), NULL, 'To Do',       0, '#6366f1'),
            (gen_random_uuid(), NULL, 'In Progress', 1, '#f59e0b'),
            (gen_random_uuid(), NULL, 'Completed',   2, '#10b981')
    """)

    op.execute("""
        INSERT INTO task_labels (id, project_id, name, color)
        VALUES
            (gen_random_uuid(), NULL, 'Bug',           '#ef4444'),
            (gen_random_uuid(), NULL, 'Documentation', '#0ea5e9'),
            (gen_random_uuid(), NULL, 'Enhancement',   '#8b5cf6'),
            (gen_random_uuid(), NULL, 'Feature',       '#22c55e')
    """)


def downgrade() -> None:
    op.execute("DELETE FROM task_labels WHERE project_id IS NULL")
    op.execute("DELETE FROM task_statuses WHERE project_id IS NULL")

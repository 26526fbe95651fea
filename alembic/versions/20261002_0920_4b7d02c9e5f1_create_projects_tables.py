"""create_projects_tables

Revision ID: 4b7d02c9e5f1
Revises: 9c2e41d7a0b3
Create Date: 2026-10-02 09:20:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = '4b7d02c9e5f1'
down_revision: Union[str, None] = '9c2e41d7a0b3'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE projects (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            description TEXT,
            status VARCHAR(20) NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'in_progress', 'completed')),
            due_date TIMESTAMPTZ,
            image_path VARCHAR(500),
            created_by UUID REFERENCES users(id) ON DELETE SET NULL,
            updated_by UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX idx_projects_name ON projects(name)")

    op.execute("""
        CREATE TABLE project_members (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            role VARCHAR(20) NOT NULL CHECK (role IN ('manager', 'member')),
            status VARCHAR(20) NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'accepted', 'declined')),
            invited_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            responded_at TIMESTAMPTZ
        )
    """)
    op.execute("CREATE UNIQUE INDEX idx_project_members_project_user ON project_members(project_id, user_id)")
    op.execute("CREATE INDEX idx_project_members_user_id ON project_members(user_id)")
    op.execute(
        "CREATE INDEX idx_project_members_accepted ON project_members(user_id, project_id) "
        "WHERE status = 'accepted'"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS project_members")
    op.execute("DROP TABLE IF EXISTS projects")

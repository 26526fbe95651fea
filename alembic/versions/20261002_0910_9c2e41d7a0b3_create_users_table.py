"""create_users_table

Revision ID: 9c2e41d7a0b3
Revises:
Create Date: 2026-10-02 09:10:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = '9c2e41d7a0b3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users table."""
    op.execute("""
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email VARCHAR(255) NOT NULL,
            password_hash VARCHAR(255),
            name VARCHAR(255) NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE UNIQUE INDEX idx_users_email ON users(email)")


def downgrade() -> None:
    """Drop users table."""
    op.execute("DROP TABLE IF EXISTS users")

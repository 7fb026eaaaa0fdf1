"""007: seed system pool account

Revision ID: 007
Revises: 006
Create Date: 2026-10-16
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        INSERT INTO accounts (user_id, balance, version)
        VALUES ('SYSTEM_POOL', 0, 0)
        ON CONFLICT (user_id) DO NOTHING;
    """)


def downgrade() -> None:
    op.execute("DELETE FROM accounts WHERE user_id = 'SYSTEM_POOL';")

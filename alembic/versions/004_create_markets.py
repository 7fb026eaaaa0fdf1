"""004: create markets table

Revision ID: 004
Revises: 003
Create Date: 2026-10-16
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE markets (
            id                BIGINT       PRIMARY KEY,
            start_price       BIGINT       NOT NULL,
            end_price         BIGINT       NOT NULL DEFAULT 0,
            total_up_stake    BIGINT       NOT NULL DEFAULT 0,
            total_down_stake  BIGINT       NOT NULL DEFAULT 0,
            start_block       BIGINT       NOT NULL,
            end_block         BIGINT       NOT NULL,
            resolved          BOOLEAN      NOT NULL DEFAULT FALSE,
            created_by        VARCHAR(128) NOT NULL,
            resolved_by       VARCHAR(128),
            resolved_at       TIMESTAMPTZ,
            created_at        TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at        TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_markets_start_price_gt_0 CHECK (start_price > 0),
            CONSTRAINT ck_markets_end_price_gte_0  CHECK (end_price >= 0),
            CONSTRAINT ck_markets_window           CHECK (start_block >= 0 AND end_block > start_block),
            CONSTRAINT ck_markets_stakes_gte_0     CHECK (total_up_stake >= 0 AND total_down_stake >= 0),
            CONSTRAINT ck_markets_resolution CHECK (
                (resolved = FALSE AND end_price = 0)
                OR (resolved = TRUE AND end_price > 0)
            )
        );
    """)
    op.execute("CREATE INDEX idx_markets_resolved ON markets (resolved, id DESC);")
    op.execute("""
        CREATE TRIGGER trg_markets_updated_at
            BEFORE UPDATE ON markets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE markets IS 'Binary up/down markets — never deleted';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")

"""002: create protocol_config table

Revision ID: 002
Revises: 001
Create Date: 2026-10-16
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE protocol_config (
            id              SMALLINT     PRIMARY KEY DEFAULT 1,
            owner_id        VARCHAR(128) NOT NULL,
            oracle_id       VARCHAR(128) NOT NULL,
            minimum_stake   BIGINT       NOT NULL,
            fee_percent     SMALLINT     NOT NULL,
            next_market_id  BIGINT       NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_protocol_config_singleton   CHECK (id = 1),
            CONSTRAINT ck_protocol_config_min_stake   CHECK (minimum_stake > 0),
            CONSTRAINT ck_protocol_config_fee_range   CHECK (fee_percent BETWEEN 0 AND 100),
            CONSTRAINT ck_protocol_config_next_id     CHECK (next_market_id >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_protocol_config_updated_at
            BEFORE UPDATE ON protocol_config
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE protocol_config IS 'Protocol parameters — single row, owner fixed at deployment';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS protocol_config CASCADE;")

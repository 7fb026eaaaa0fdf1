"""005: create predictions table

Revision ID: 005
Revises: 004
Create Date: 2026-10-16
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE predictions (
            market_id      BIGINT       NOT NULL REFERENCES markets(id),
            participant    VARCHAR(128) NOT NULL,
            direction      VARCHAR(4)   NOT NULL,
            stake          BIGINT       NOT NULL,
            claimed        BOOLEAN      NOT NULL DEFAULT FALSE,
            payout_amount  BIGINT,
            fee_amount     BIGINT,
            claimed_at     TIMESTAMPTZ,
            created_at     TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at     TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_predictions             PRIMARY KEY (market_id, participant),
            CONSTRAINT ck_predictions_direction   CHECK (direction IN ('UP', 'DOWN')),
            CONSTRAINT ck_predictions_stake_gt_0  CHECK (stake > 0),
            CONSTRAINT ck_predictions_claim_amounts CHECK (
                claimed = FALSE
                OR (payout_amount >= 0 AND fee_amount >= 0 AND claimed_at IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_predictions_participant ON predictions (participant);")
    op.execute("""
        CREATE TRIGGER trg_predictions_updated_at
            BEFORE UPDATE ON predictions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS predictions CASCADE;")

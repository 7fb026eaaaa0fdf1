"""ProtocolRepository — the single protocol_config row (id = 1).

owner_id is written once by insert_if_absent and has no UPDATE path.
next_market_id is advanced with UPDATE ... RETURNING so two creations can
never observe the same id.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.errors import InternalError
from src.pm_protocol.domain.models import ProtocolConfig

_CONFIG_COLUMNS = "owner_id, oracle_id, minimum_stake, fee_percent, next_market_id, updated_at"

_GET_CONFIG_SQL = text(f"SELECT {_CONFIG_COLUMNS} FROM protocol_config WHERE id = 1")

_GET_CONFIG_FOR_UPDATE_SQL = text(
    f"SELECT {_CONFIG_COLUMNS} FROM protocol_config WHERE id = 1 FOR UPDATE"
)

_INSERT_CONFIG_SQL = text("""
    INSERT INTO protocol_config (id, owner_id, oracle_id, minimum_stake, fee_percent)
    VALUES (1, :owner_id, :oracle_id, :minimum_stake, :fee_percent)
    ON CONFLICT (id) DO NOTHING
""")

_ALLOCATE_MARKET_ID_SQL = text("""
    UPDATE protocol_config
    SET next_market_id = next_market_id + 1,
        updated_at = NOW()
    WHERE id = 1
    RETURNING next_market_id - 1 AS market_id
""")

_SET_ORACLE_SQL = text(f"""
    UPDATE protocol_config SET oracle_id = :value, updated_at = NOW()
    WHERE id = 1
    RETURNING {_CONFIG_COLUMNS}
""")

_SET_MINIMUM_STAKE_SQL = text(f"""
    UPDATE protocol_config SET minimum_stake = :value, updated_at = NOW()
    WHERE id = 1
    RETURNING {_CONFIG_COLUMNS}
""")

_SET_FEE_PERCENT_SQL = text(f"""
    UPDATE protocol_config SET fee_percent = :value, updated_at = NOW()
    WHERE id = 1
    RETURNING {_CONFIG_COLUMNS}
""")


def _row_to_config(row: object) -> ProtocolConfig:
    return ProtocolConfig(
        owner_id=row.owner_id,  # type: ignore[attr-defined]
        oracle_id=row.oracle_id,  # type: ignore[attr-defined]
        minimum_stake=row.minimum_stake,  # type: ignore[attr-defined]
        fee_percent=row.fee_percent,  # type: ignore[attr-defined]
        next_market_id=row.next_market_id,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class ProtocolRepository:
    async def get_config(
        self, db: AsyncSession, for_update: bool = False
    ) -> ProtocolConfig | None:
        sql = _GET_CONFIG_FOR_UPDATE_SQL if for_update else _GET_CONFIG_SQL
        row = (await db.execute(sql)).fetchone()
        return _row_to_config(row) if row else None

    async def insert_if_absent(
        self,
        db: AsyncSession,
        owner_id: str,
        oracle_id: str,
        minimum_stake: int,
        fee_percent: int,
    ) -> ProtocolConfig:
        await db.execute(
            _INSERT_CONFIG_SQL,
            {
                "owner_id": owner_id,
                "oracle_id": oracle_id,
                "minimum_stake": minimum_stake,
                "fee_percent": fee_percent,
            },
        )
        config = await self.get_config(db)
        if config is None:
            raise InternalError("protocol_config row missing after insert")
        return config

    async def allocate_market_id(self, db: AsyncSession) -> int:
        row = (await db.execute(_ALLOCATE_MARKET_ID_SQL)).fetchone()
        if row is None:
            raise InternalError("protocol_config row missing: bootstrap has not run")
        return int(row.market_id)

    async def set_oracle(self, db: AsyncSession, oracle_id: str) -> ProtocolConfig:
        return await self._update(db, _SET_ORACLE_SQL, oracle_id)

    async def set_minimum_stake(self, db: AsyncSession, minimum_stake: int) -> ProtocolConfig:
        return await self._update(db, _SET_MINIMUM_STAKE_SQL, minimum_stake)

    async def set_fee_percent(self, db: AsyncSession, fee_percent: int) -> ProtocolConfig:
        return await self._update(db, _SET_FEE_PERCENT_SQL, fee_percent)

    async def _update(self, db: AsyncSession, sql: object, value: object) -> ProtocolConfig:
        row = (await db.execute(sql, {"value": value})).fetchone()  # type: ignore[arg-type]
        if row is None:
            raise InternalError("protocol_config row missing: bootstrap has not run")
        return _row_to_config(row)

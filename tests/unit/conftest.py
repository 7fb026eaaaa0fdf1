"""Unit-test fixtures: in-memory repositories conforming to the repository Protocols.

FakeSession snapshots every registered store on commit and restores it on
rollback, so service tests observe the same all-or-nothing behaviour as a
real transaction.
"""

import copy
from dataclasses import replace
from datetime import UTC, datetime

import pytest

from src.pm_common.enums import Direction, LedgerEntryType
from src.pm_common.errors import (
    AlreadyClaimedError,
    AlreadyResolvedError,
    InsufficientBalanceError,
    InvalidParameterError,
    MarketNotFoundError,
)
from src.pm_common.locks import KeyedLocks
from src.pm_escrow.application.service import EscrowApplicationService
from src.pm_escrow.domain.constants import POOL_ACCOUNT_ID
from src.pm_escrow.domain.models import Account, LedgerEntry, TransferReceipt
from src.pm_market.application.service import MarketApplicationService
from src.pm_market.domain.models import Market
from src.pm_prediction.application.service import PredictionApplicationService
from src.pm_prediction.domain.models import Prediction
from src.pm_protocol.application.service import ProtocolAdminService
from src.pm_protocol.domain.models import ProtocolConfig
from src.pm_settlement.application.service import SettlementApplicationService
from src.pm_settlement.domain.invariants import MarketDisbursement


class _Store:
    def snapshot(self) -> dict:
        return copy.deepcopy(self.__dict__)

    def restore(self, state: dict) -> None:
        self.__dict__.update(copy.deepcopy(state))


class FakeSession:
    def __init__(self, *stores: _Store) -> None:
        self._stores = stores
        self.commits = 0
        self.rollbacks = 0
        self._saved = [s.snapshot() for s in stores]

    async def commit(self) -> None:
        self.commits += 1
        self._saved = [s.snapshot() for s in self._stores]

    def checkpoint(self) -> None:
        """Treat direct store edits made by a test as committed."""
        self._saved = [s.snapshot() for s in self._stores]

    async def rollback(self) -> None:
        self.rollbacks += 1
        for store, state in zip(self._stores, self._saved):
            store.restore(state)


class FakeEscrow(_Store):
    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self.balances: dict[str, int] = dict(balances or {})
        self.entries: list[LedgerEntry] = []
        self._last_id = 0

    async def get_account(self, db, user_id: str) -> Account | None:
        if user_id not in self.balances:
            return None
        return Account(user_id=user_id, balance=self.balances[user_id], version=0)

    async def balance_of(self, db, user_id: str) -> int:
        return self.balances.get(user_id, 0)

    async def transfer(
        self, db, amount, sender, recipient, entry_type, reference_type, reference_id
    ) -> TransferReceipt:
        if amount <= 0:
            raise InvalidParameterError(f"transfer amount must be positive, got {amount}")
        if sender == recipient:
            raise InvalidParameterError(f"cannot transfer from {sender} to itself")
        available = self.balances.get(sender, 0)
        if available < amount:
            raise InsufficientBalanceError(amount, available)
        self.balances[sender] = available - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount
        debit = self._entry(sender, entry_type, -amount, reference_type, reference_id)
        credit = self._entry(recipient, entry_type, amount, reference_type, reference_id)
        return TransferReceipt(amount=amount, debit=debit, credit=credit)

    async def deposit(self, db, user_id: str, amount: int) -> tuple[Account, LedgerEntry]:
        if amount <= 0:
            raise InvalidParameterError(f"deposit amount must be positive, got {amount}")
        self.balances[user_id] = self.balances.get(user_id, 0) + amount
        entry = self._entry(user_id, LedgerEntryType.DEPOSIT, amount, "DEPOSIT", None)
        return await self.get_account(db, user_id), entry  # type: ignore[return-value]

    def _entry(self, user_id, entry_type, amount, reference_type, reference_id) -> LedgerEntry:
        self._last_id += 1
        entry = LedgerEntry(
            id=self._last_id,
            user_id=user_id,
            entry_type=entry_type.value,
            amount=amount,
            balance_after=self.balances[user_id],
            reference_type=reference_type,
            reference_id=reference_id,
        )
        self.entries.append(entry)
        return entry

    def entries_of(self, entry_type: LedgerEntryType) -> list[LedgerEntry]:
        return [e for e in self.entries if e.entry_type == entry_type.value]


class FakeProtocol(_Store):
    def __init__(self, config: ProtocolConfig | None = None) -> None:
        self.config = config

    async def get_config(self, db, for_update: bool = False) -> ProtocolConfig | None:
        return replace(self.config) if self.config else None

    async def insert_if_absent(self, db, owner_id, oracle_id, minimum_stake, fee_percent):
        if self.config is None:
            self.config = ProtocolConfig(
                owner_id=owner_id,
                oracle_id=oracle_id,
                minimum_stake=minimum_stake,
                fee_percent=fee_percent,
                next_market_id=0,
            )
        return replace(self.config)

    async def allocate_market_id(self, db) -> int:
        market_id = self.config.next_market_id
        self.config.next_market_id += 1
        return market_id

    async def set_oracle(self, db, oracle_id: str) -> ProtocolConfig:
        self.config.oracle_id = oracle_id
        return replace(self.config)

    async def set_minimum_stake(self, db, minimum_stake: int) -> ProtocolConfig:
        self.config.minimum_stake = minimum_stake
        return replace(self.config)

    async def set_fee_percent(self, db, fee_percent: int) -> ProtocolConfig:
        self.config.fee_percent = fee_percent
        return replace(self.config)


class FakeMarkets(_Store):
    def __init__(self) -> None:
        self.markets: dict[int, Market] = {}

    async def get_market_by_id(self, db, market_id: int, for_update: bool = False):
        market = self.markets.get(market_id)
        return replace(market) if market else None

    async def list_markets(self, db, resolved, cursor_id, limit) -> list[Market]:
        rows = sorted(self.markets.values(), key=lambda m: m.id, reverse=True)
        if resolved is not None:
            rows = [m for m in rows if m.resolved == resolved]
        if cursor_id is not None:
            rows = [m for m in rows if m.id < cursor_id]
        return [replace(m) for m in rows[:limit]]

    async def insert_market(self, db, market_id, start_price, start_block, end_block, created_by):
        self.markets[market_id] = Market(
            id=market_id,
            start_price=start_price,
            end_price=0,
            total_up_stake=0,
            total_down_stake=0,
            start_block=start_block,
            end_block=end_block,
            resolved=False,
            created_by=created_by,
            resolved_by=None,
            resolved_at=None,
            created_at=datetime.now(UTC),
        )
        return replace(self.markets[market_id])

    async def mark_resolved(self, db, market_id, end_price, resolved_by, resolved_at):
        market = self.markets[market_id]
        if market.resolved:
            raise AlreadyResolvedError(market_id)
        market.end_price = end_price
        market.resolved = True
        market.resolved_by = resolved_by
        market.resolved_at = resolved_at
        return replace(market)

    async def add_stake(self, db, market_id: int, direction: Direction, amount: int):
        market = self.markets.get(market_id)
        if market is None or market.resolved:
            raise MarketNotFoundError(market_id)
        if direction == Direction.UP:
            market.total_up_stake += amount
        else:
            market.total_down_stake += amount
        return replace(market)


class FakePredictions(_Store):
    def __init__(self) -> None:
        self.rows: dict[tuple[int, str], Prediction] = {}

    async def get_prediction(self, db, market_id, participant, for_update: bool = False):
        row = self.rows.get((market_id, participant))
        return replace(row) if row else None

    async def upsert_prediction(self, db, market_id, participant, direction, stake):
        self.rows[(market_id, participant)] = Prediction(
            market_id=market_id,
            participant=participant,
            direction=direction.value,
            stake=stake,
        )
        return replace(self.rows[(market_id, participant)])

    async def mark_claimed(self, db, market_id, participant, payout_amount, fee_amount, claimed_at):
        row = self.rows[(market_id, participant)]
        if row.claimed:
            raise AlreadyClaimedError(market_id, participant)
        row.claimed = True
        row.payout_amount = payout_amount
        row.fee_amount = fee_amount
        row.claimed_at = claimed_at
        return replace(row)


class FakeSettlementRepo:
    """Aggregates disbursements from the fake market and prediction stores."""

    def __init__(self, markets: FakeMarkets, predictions: FakePredictions) -> None:
        self._markets = markets
        self._predictions = predictions

    async def get_disbursements(self, db, market_id: int | None = None):
        result = []
        for m in sorted(self._markets.markets.values(), key=lambda m: m.id):
            if market_id is not None and m.id != market_id:
                continue
            claimed = [
                p for (mid, _), p in self._predictions.rows.items()
                if mid == m.id and p.claimed
            ]
            result.append(
                MarketDisbursement(
                    market_id=m.id,
                    total_stake=m.total_stake,
                    disbursed=sum(p.payout_amount + p.fee_amount for p in claimed),
                    claims=len(claimed),
                )
            )
        return result


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------

OWNER = "owner"
ORACLE = "oracle"
MIN_STAKE = 1_000_000
FEE_PERCENT = 2


class World:
    """All services wired to one set of in-memory stores and one session."""

    owner = OWNER
    oracle = ORACLE
    min_stake = MIN_STAKE
    fee_percent = FEE_PERCENT

    def __init__(self, reject_duplicates: bool = False) -> None:
        self.escrow = FakeEscrow({POOL_ACCOUNT_ID: 0})
        self.protocol = FakeProtocol(
            ProtocolConfig(
                owner_id=OWNER,
                oracle_id=ORACLE,
                minimum_stake=MIN_STAKE,
                fee_percent=FEE_PERCENT,
                next_market_id=0,
            )
        )
        self.markets = FakeMarkets()
        self.predictions = FakePredictions()
        self.db = FakeSession(self.escrow, self.protocol, self.markets, self.predictions)
        locks = KeyedLocks()

        self.market_svc = MarketApplicationService(
            repo=self.markets, protocol=self.protocol, locks=locks
        )
        self.prediction_svc = PredictionApplicationService(
            repo=self.predictions,
            markets=self.markets,
            protocol=self.protocol,
            escrow=self.escrow,
            locks=locks,
            reject_duplicates=reject_duplicates,
        )
        self.settlement_svc = SettlementApplicationService(
            predictions=self.predictions,
            markets=self.markets,
            protocol=self.protocol,
            escrow=self.escrow,
            audit_repo=FakeSettlementRepo(self.markets, self.predictions),
            locks=locks,
        )
        self.admin_svc = ProtocolAdminService(repo=self.protocol, escrow=self.escrow)
        self.escrow_svc = EscrowApplicationService(repo=self.escrow)

    def fund(self, principal: str, amount: int) -> None:
        self.escrow.balances[principal] = self.escrow.balances.get(principal, 0) + amount
        self.db.checkpoint()

    def balance(self, principal: str) -> int:
        return self.escrow.balances.get(principal, 0)

    async def open_market(
        self, start_price: int = 100, start_block: int = 10, end_block: int = 20
    ) -> int:
        detail = await self.market_svc.create_market(
            self.db, OWNER, start_price, start_block, end_block
        )
        return detail.id

    async def stake(
        self, market_id: int, who: str, direction: str, amount: int, height: int = 10
    ):
        return await self.prediction_svc.submit_prediction(
            self.db, who, market_id, direction, amount, height
        )

    async def resolve(self, market_id: int, end_price: int, height: int = 20):
        return await self.market_svc.resolve_market(
            self.db, ORACLE, market_id, end_price, height
        )


@pytest.fixture
def world() -> World:
    return World()


@pytest.fixture
def strict_world() -> World:
    return World(reject_duplicates=True)

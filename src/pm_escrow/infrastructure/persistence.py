"""EscrowRepository — concrete implementation of EscrowRepositoryProtocol.

Debits use an atomic conditional UPDATE ... WHERE balance >= :amount RETURNING.
A result of 0 rows means the sender cannot cover the amount.
Credits upsert, so a recipient account is created on first receipt.
A transfer first locks both existing account rows in user_id order so that
opposite-direction transfers between the same two accounts cannot deadlock.

Transaction ownership: The CALLER (application service) owns the transaction
and commits or rolls back once the whole operation has run.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import LedgerEntryType
from src.pm_common.errors import InsufficientBalanceError, InternalError, InvalidParameterError
from src.pm_escrow.domain.models import Account, LedgerEntry, TransferReceipt

# ---------------------------------------------------------------------------
# SQL: accounts
# ---------------------------------------------------------------------------

_GET_ACCOUNT_SQL = text("""
    SELECT user_id, balance, version, created_at, updated_at
    FROM accounts
    WHERE user_id = :user_id
""")

_LOCK_PAIR_SQL = text("""
    SELECT user_id
    FROM accounts
    WHERE user_id IN (:first, :second)
    ORDER BY user_id
    FOR UPDATE
""")

_DEBIT_SQL = text("""
    UPDATE accounts
    SET balance = balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND balance >= :amount
    RETURNING user_id, balance, version, created_at, updated_at
""")

_CREDIT_SQL = text("""
    INSERT INTO accounts (user_id, balance)
    VALUES (:user_id, :amount)
    ON CONFLICT (user_id) DO UPDATE
        SET balance = accounts.balance + EXCLUDED.balance,
            version = accounts.version + 1,
            updated_at = NOW()
    RETURNING user_id, balance, version, created_at, updated_at
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
    RETURNING id, user_id, entry_type, amount, balance_after,
              reference_type, reference_id, description, created_at
""")


def _row_to_account(row: object) -> Account:
    return Account(
        user_id=row.user_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class EscrowRepository:
    """Concrete repository — every balance change is paired with a ledger row."""

    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def balance_of(self, db: AsyncSession, user_id: str) -> int:
        account = await self.get_account(db, user_id)
        return account.balance if account else 0

    async def transfer(
        self,
        db: AsyncSession,
        amount: int,
        sender: str,
        recipient: str,
        entry_type: LedgerEntryType,
        reference_type: str,
        reference_id: str,
    ) -> TransferReceipt:
        if amount <= 0:
            raise InvalidParameterError(f"transfer amount must be positive, got {amount}")
        if sender == recipient:
            raise InvalidParameterError(f"cannot transfer from {sender} to itself")

        # Both rows locked in user_id order, whatever the transfer direction.
        await db.execute(_LOCK_PAIR_SQL, {"first": sender, "second": recipient})

        debit_row = (
            await db.execute(_DEBIT_SQL, {"user_id": sender, "amount": amount})
        ).fetchone()
        if debit_row is None:
            raise InsufficientBalanceError(amount, await self.balance_of(db, sender))
        sender_account = _row_to_account(debit_row)

        credit_row = (
            await db.execute(_CREDIT_SQL, {"user_id": recipient, "amount": amount})
        ).fetchone()
        if credit_row is None:
            raise InternalError("Credit upsert returned no rows")
        recipient_account = _row_to_account(credit_row)

        description = f"{entry_type.value} {sender} -> {recipient}"
        debit = await self._write_ledger(
            db, sender, entry_type, -amount, sender_account.balance,
            reference_type, reference_id, description,
        )
        credit = await self._write_ledger(
            db, recipient, entry_type, amount, recipient_account.balance,
            reference_type, reference_id, description,
        )
        return TransferReceipt(amount=amount, debit=debit, credit=credit)

    async def deposit(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Account, LedgerEntry]:
        if amount <= 0:
            raise InvalidParameterError(f"deposit amount must be positive, got {amount}")
        row = (await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})).fetchone()
        if row is None:
            raise InternalError("Credit upsert returned no rows")
        account = _row_to_account(row)
        entry = await self._write_ledger(
            db, user_id, LedgerEntryType.DEPOSIT, amount, account.balance,
            "DEPOSIT", None, "Simulated deposit",
        )
        return account, entry

    async def _write_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        entry_type: LedgerEntryType,
        amount: int,
        balance_after: int,
        reference_type: str,
        reference_id: str | None,
        description: str,
    ) -> LedgerEntry:
        result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": user_id,
                "entry_type": entry_type.value,
                "amount": amount,
                "balance_after": balance_after,
                "reference_type": reference_type,
                "reference_id": reference_id,
                "description": description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_ledger(row)

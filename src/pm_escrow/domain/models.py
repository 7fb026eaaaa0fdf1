"""Domain models for pm_escrow — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    user_id: str
    balance: int             # smallest collateral unit
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # positive=income negative=expense
    balance_after: int               # balance snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


@dataclass
class TransferReceipt:
    """Both legs of one transfer, in the order they were written."""

    amount: int
    debit: LedgerEntry
    credit: LedgerEntry

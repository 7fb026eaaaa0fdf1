"""System accounts held by the escrow."""

# Every stake lands here; payouts, fees and fee withdrawals leave from here.
POOL_ACCOUNT_ID = "SYSTEM_POOL"

SYSTEM_ACCOUNT_IDS: frozenset[str] = frozenset({POOL_ACCOUNT_ID})


def is_system_account(user_id: str) -> bool:
    return user_id in SYSTEM_ACCOUNT_IDS

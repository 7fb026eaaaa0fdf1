"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


class Role(str, Enum):
    OWNER = "OWNER"
    ORACLE = "ORACLE"


class LedgerEntryType(str, Enum):
    # Simulated funding
    DEPOSIT = "DEPOSIT"
    # Participant → pool at prediction time
    STAKE = "STAKE"
    # Pool → winner at claim time
    PAYOUT = "PAYOUT"
    # Pool → owner (treasury) at claim time
    FEE = "FEE"
    # Pool → owner via admin withdrawal
    FEE_WITHDRAWAL = "FEE_WITHDRAWAL"

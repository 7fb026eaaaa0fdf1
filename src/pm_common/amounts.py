"""Integer bounds for prices, blocks and collateral amounts.

Every stored number lives in a Postgres BIGINT column.
"""

from src.pm_common.errors import InvalidParameterError

BIGINT_MAX = 2**63 - 1


def fits_bigint(value: int) -> bool:
    return 0 <= value <= BIGINT_MAX


def validate_bounded(name: str, value: int, minimum: int = 1) -> None:
    """Raise InvalidParameterError if value is not in [minimum, BIGINT_MAX]."""
    if not (minimum <= value <= BIGINT_MAX):
        raise InvalidParameterError(
            f"{name} must be within [{minimum}, {BIGINT_MAX}], got {value}"
        )

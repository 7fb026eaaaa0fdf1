"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Role
  2xxx: Escrow
  3xxx: Market
  4xxx: Prediction
  5xxx: Settlement
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class NotFoundError(AppError):
    """Referenced market or prediction record does not exist."""


# --- 1xxx: Auth/Role ---

class UnauthorizedError(AppError):
    def __init__(self, role: str) -> None:
        super().__init__(1001, f"Caller does not hold the {role} role", 403)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired credentials", 401)


# --- 2xxx: Escrow ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required}, available {available}",
            422,
        )


# --- 3xxx: Market ---

class MarketNotFoundError(NotFoundError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketClosedError(AppError):
    def __init__(self, market_id: int, height: int) -> None:
        super().__init__(
            3002, f"Market {market_id} is not accepting predictions at height {height}", 422
        )


class MarketNotClosedError(MarketClosedError):
    """Resolution attempted before the market window has ended."""

    def __init__(self, market_id: int, height: int, end_block: int) -> None:
        AppError.__init__(
            self,
            3003,
            f"Market {market_id} closes at block {end_block}, current height {height}",
            422,
        )


class AlreadyResolvedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3004, f"Market already resolved: {market_id}", 409)


class MarketNotResolvedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3005, f"Market not resolved yet: {market_id}", 422)


# --- 4xxx: Prediction ---

class PredictionNotFoundError(NotFoundError):
    def __init__(self, market_id: int, participant: str) -> None:
        super().__init__(
            4001, f"No prediction by {participant} in market {market_id}", 404
        )


class InvalidPredictionError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, f"Invalid prediction: {detail}", 422)


class NotAWinnerError(InvalidPredictionError):
    def __init__(self, market_id: int, participant: str) -> None:
        super().__init__(f"{participant} did not pick the winning side of market {market_id}")


class AlreadyClaimedError(AppError):
    def __init__(self, market_id: int, participant: str) -> None:
        super().__init__(
            4003, f"Winnings already claimed by {participant} in market {market_id}", 409
        )


# --- 5xxx: Settlement ---

class NoWinningStakeError(AppError):
    def __init__(self, market_id: int | None = None) -> None:
        where = f" in market {market_id}" if market_id is not None else ""
        super().__init__(5001, f"Winning side has no stake{where}", 409)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class InvalidParameterError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Invalid parameter: {detail}", 400)


class HeightUnavailableError(AppError):
    def __init__(self, detail: str = "Chain height is unavailable") -> None:
        super().__init__(9004, detail, 503)

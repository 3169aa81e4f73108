"""
Domain-specific errors for the portfolio bounded context.

All errors raised from the domain layer must be defined here.
Each error carries a stable ``kind`` tag; the interface layer maps
errors to HTTP responses.
No framework imports allowed.
"""

from typing import Optional
from uuid import UUID


class PortfolioDomainError(Exception):
    """Base error for all portfolio domain errors."""

    kind = "PortfolioError"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class InvalidOrderError(PortfolioDomainError):
    """Raised when an order is malformed (quantity, symbol, side, price)."""

    kind = "InvalidOrder"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid order: {reason}")
        self.reason = reason


class SymbolNotFoundError(PortfolioDomainError):
    """Raised when the price oracle does not know a symbol."""

    kind = "SymbolNotFound"

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Symbol not found: {symbol}")
        self.symbol = symbol


class PriceUnavailableError(PortfolioDomainError):
    """Raised when a price cannot be fetched right now. Retryable."""

    kind = "PriceUnavailable"

    def __init__(self, symbol: str, reason: str) -> None:
        super().__init__(f"Price unavailable for {symbol}: {reason}")
        self.symbol = symbol
        self.reason = reason


class InsufficientFundsError(PortfolioDomainError):
    """Raised when the cash balance cannot cover a purchase plus fee."""

    kind = "InsufficientFunds"

    def __init__(self, required: str, available: str) -> None:
        super().__init__(
            f"Insufficient funds: required {required}, available {available}"
        )
        self.required = required
        self.available = available


class InsufficientQuantityError(PortfolioDomainError):
    """Raised when selling more than the open position holds."""

    kind = "InsufficientQuantity"

    def __init__(self, symbol: str, requested: str, available: str) -> None:
        super().__init__(
            f"Insufficient quantity of {symbol}: "
            f"requested {requested}, available {available}"
        )
        self.symbol = symbol
        self.requested = requested
        self.available = available


class NoPositionError(PortfolioDomainError):
    """Raised when selling a symbol the user does not hold."""

    kind = "NoPosition"

    def __init__(self, symbol: str) -> None:
        super().__init__(f"No open position in {symbol}")
        self.symbol = symbol


class InvalidQueryError(PortfolioDomainError):
    """Raised when a read-side query parameter is out of range."""

    kind = "InvalidQuery"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid query: {reason}")
        self.reason = reason


class UserNotFoundError(PortfolioDomainError):
    """Raised when a user account cannot be found."""

    kind = "UserNotFound"

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class AccountAlreadyExistsError(PortfolioDomainError):
    """Raised when an account with the same email already exists."""

    kind = "AccountAlreadyExists"

    def __init__(self, email: str) -> None:
        super().__init__(f"An account already exists for {email}")
        self.email = email


class PersistenceError(PortfolioDomainError):
    """Raised when a ledger store operation fails.

    ``trade_id`` is set when the failure happened after the trade
    record was written, i.e. derived state (balance, holding) may be
    stale relative to the trade ledger.
    """

    kind = "PersistenceError"

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(f"Persistence failure during {operation}: {reason}")
        self.operation = operation
        self.reason = reason
        self.trade_id: Optional[UUID] = None

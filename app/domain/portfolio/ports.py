"""
Port interfaces (ABCs) for the portfolio bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from app.domain.portfolio.entities import (
    Holding,
    PricePoint,
    Trade,
    TradeDraft,
    User,
)


class PriceOracle(ABC):
    """Port for current market prices.

    Implementations apply their own request throttling. Callers treat
    every failure as either SymbolNotFoundError or PriceUnavailableError.
    """

    @abstractmethod
    def get_price(self, symbol: str) -> Decimal:
        """Return the current price of a symbol.

        Raises:
            SymbolNotFoundError: If the symbol is unknown to the oracle.
            PriceUnavailableError: If the upstream call fails or is throttled.
        """
        raise NotImplementedError

    @abstractmethod
    def get_prices(self, symbols: Iterable[str]) -> dict[str, Decimal]:
        """Return current prices for several symbols in one call.

        Unknown symbols are left out of the result.

        Raises:
            PriceUnavailableError: If the upstream call fails or is throttled.
        """
        raise NotImplementedError

    @abstractmethod
    def get_history(self, symbol: str, days: int) -> list[PricePoint]:
        """Return the USD price history of a symbol, oldest first.

        Args:
            symbol: Canonical asset symbol.
            days: How many days back the history reaches.

        Raises:
            SymbolNotFoundError: If the symbol is unknown to the oracle.
            PriceUnavailableError: If the upstream call fails or is throttled.
        """
        raise NotImplementedError


class LedgerStore(ABC):
    """Port for durable User, Trade and Holding records.

    Each operation is atomic for a single record only. Every failure of
    the backing store surfaces as PersistenceError.
    """

    @abstractmethod
    def create_user(self, name: str, email: str, balance: Decimal) -> User:
        """Insert a new user and return it with its assigned id."""
        raise NotImplementedError

    @abstractmethod
    def get_user(self, user_id: UUID) -> Optional[User]:
        """Return a user by id, or None if not found."""
        raise NotImplementedError

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]:
        """Return a user by email, or None if not found."""
        raise NotImplementedError

    @abstractmethod
    def get_holding(self, user_id: UUID, symbol: str) -> Optional[Holding]:
        """Return the user's holding for a symbol, or None."""
        raise NotImplementedError

    @abstractmethod
    def list_holdings(self, user_id: UUID) -> list[Holding]:
        """Return all open holdings of a user ordered by symbol."""
        raise NotImplementedError

    @abstractmethod
    def insert_trade(self, draft: TradeDraft) -> Trade:
        """Append a trade record, assigning its id and timestamp."""
        raise NotImplementedError

    @abstractmethod
    def list_trades(
        self,
        user_id: UUID,
        limit: Optional[int] = None,
        newest_first: bool = True,
    ) -> list[Trade]:
        """Return a user's trades in insertion order (or reversed)."""
        raise NotImplementedError

    @abstractmethod
    def set_user_balance(self, user_id: UUID, balance: Decimal) -> None:
        """Overwrite the cash balance of a user."""
        raise NotImplementedError

    @abstractmethod
    def upsert_holding(
        self, user_id: UUID, symbol: str, quantity: Decimal, avg_price: Decimal
    ) -> Holding:
        """Create or replace the holding for (user, symbol)."""
        raise NotImplementedError

    @abstractmethod
    def delete_holding(self, user_id: UUID, symbol: str) -> None:
        """Remove the holding for (user, symbol)."""
        raise NotImplementedError

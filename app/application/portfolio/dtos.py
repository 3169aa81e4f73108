"""
Data Transfer Objects for the portfolio application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID


# ------------------------------------------------------------------
# Trade execution DTOs
# ------------------------------------------------------------------


@dataclass(frozen=True)
class ExecuteTradeCommand:
    """Input DTO for submitting an order.

    Attributes:
        user_id: Verified identifier of the ordering user.
        symbol: Asset symbol, any case.
        side: "BUY" or "SELL", any case.
        quantity: Quantity to trade; must be positive.
        price: Optional explicit execution price. Market price when omitted.
    """

    user_id: UUID
    symbol: str
    side: str
    quantity: Decimal
    price: Optional[Decimal] = None


@dataclass(frozen=True)
class TradeResult:
    """Output DTO for a persisted trade.

    Attributes:
        id: Trade identifier.
        user_id: Owner of the trade.
        symbol: Canonical asset symbol.
        side: "BUY" or "SELL".
        quantity: Traded quantity.
        price: Execution price.
        total: quantity x price.
        fee: Fee charged on the total.
        created_at: When the trade was recorded.
    """

    id: UUID
    user_id: UUID
    symbol: str
    side: str
    quantity: Decimal
    price: Decimal
    total: Decimal
    fee: Decimal
    created_at: datetime


# ------------------------------------------------------------------
# Account DTOs
# ------------------------------------------------------------------


@dataclass(frozen=True)
class CreateAccountCommand:
    """Input DTO for opening an account.

    Attributes:
        name: Display name.
        email: Contact email; unique across accounts.
    """

    name: str
    email: str


@dataclass(frozen=True)
class AccountResult:
    """Output DTO for an account."""

    id: UUID
    name: str
    email: str
    balance: Decimal
    created_at: Optional[datetime]


# ------------------------------------------------------------------
# Read-side DTOs
# ------------------------------------------------------------------


@dataclass(frozen=True)
class GetTradeHistoryQuery:
    """Input DTO for listing a user's trades, newest first."""

    user_id: UUID
    limit: int = 50


@dataclass(frozen=True)
class GetPortfolioQuery:
    """Input DTO for valuing a user's portfolio."""

    user_id: UUID


@dataclass(frozen=True)
class HoldingValuation:
    """Output DTO for one holding valued at the current market price.

    Attributes:
        symbol: Asset symbol.
        quantity: Units held.
        avg_price: Weighted average acquisition price.
        current_price: Market price, or avg_price when unavailable.
        market_value: quantity x current_price.
        cost_basis: quantity x avg_price.
        unrealized_pnl: market_value - cost_basis.
        unrealized_pnl_pct: unrealized_pnl / cost_basis x 100.
        price_available: False when the oracle had no price.
    """

    symbol: str
    quantity: Decimal
    avg_price: Decimal
    current_price: Decimal
    market_value: Decimal
    cost_basis: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_pct: Decimal
    price_available: bool


@dataclass(frozen=True)
class PortfolioResult:
    """Output DTO for a portfolio valuation."""

    user_id: UUID
    cash_balance: Decimal
    holdings_value: Decimal
    total_value: Decimal
    cost_basis: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_pct: Decimal
    realized_pnl: Decimal
    holdings: list[HoldingValuation] = field(default_factory=list)


@dataclass(frozen=True)
class GetMarketPriceQuery:
    """Input DTO for the current price of one symbol."""

    symbol: str


@dataclass(frozen=True)
class GetMarketPricesQuery:
    """Input DTO for current prices of chosen symbols.

    Attributes:
        symbols: Symbols to price, any case. Unknown or unpriceable
            symbols are left out of the result.
    """

    symbols: tuple[str, ...]


@dataclass(frozen=True)
class MarketPriceResult:
    """Output DTO for a current market price."""

    symbol: str
    price: Decimal


@dataclass(frozen=True)
class GetPriceHistoryQuery:
    """Input DTO for the USD price history of one symbol.

    Attributes:
        symbol: Asset symbol, any case.
        days: Days of history, 1 to 365.
    """

    symbol: str
    days: int = 7


@dataclass(frozen=True)
class PricePointResult:
    """Output DTO for one history sample."""

    timestamp: datetime
    price: Decimal


@dataclass(frozen=True)
class PriceHistoryResult:
    """Output DTO for a price history, oldest sample first."""

    symbol: str
    days: int
    prices: list[PricePointResult] = field(default_factory=list)


# ------------------------------------------------------------------
# Audit DTOs
# ------------------------------------------------------------------


@dataclass(frozen=True)
class AuditAccountQuery:
    """Input DTO for auditing an account against its trade ledger."""

    user_id: UUID


@dataclass(frozen=True)
class AuditDiscrepancy:
    """One difference between stored state and the replayed ledger.

    Attributes:
        field: "balance" or "holding:<SYMBOL>".
        expected: Value implied by the trade ledger.
        actual: Value found in the store.
    """

    field: str
    expected: str
    actual: str


@dataclass(frozen=True)
class AuditReport:
    """Output DTO for an account audit."""

    user_id: UUID
    trade_count: int
    expected_balance: Decimal
    actual_balance: Decimal
    realized_pnl: Decimal
    fees_paid: Decimal
    discrepancies: list[AuditDiscrepancy] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return not self.discrepancies

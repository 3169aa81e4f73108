"""
Pydantic schemas for portfolio API request/response validation.

These schemas enforce input validation and define the API contract.
Money and quantity fields are Decimal and serialize as strings so no
precision is lost in transit.
No business logic belongs here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, Field

SYMBOL_DESCRIPTION = "Crypto asset symbol, e.g. BTC"
SYMBOL_PATTERN = r"^[A-Za-z0-9]+$"
SYMBOL_MIN_LEN = 1
SYMBOL_MAX_LEN = 10
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
MAX_BATCH_SYMBOLS = 50


class CreateAccountRequest(BaseModel):
    """Request schema for opening an account.

    Attributes:
        name: Display name (2-120 chars).
        email: Contact email, unique per account.
    """

    name: str = Field(..., min_length=2, max_length=120)
    email: str = Field(..., max_length=320, pattern=EMAIL_PATTERN)


class AccountResponse(BaseModel):
    """Response schema for an account."""

    id: UUID
    name: str
    email: str
    balance: Decimal
    created_at: Optional[datetime] = None


class TradeRequest(BaseModel):
    """Request schema for order submission.

    Attributes:
        symbol: Asset symbol (1-10 alphanumeric chars, any case).
        side: BUY or SELL, any case.
        quantity: Units to trade, strictly positive.
        price: Optional explicit execution price; market price when omitted.
    """

    symbol: str = Field(
        ...,
        min_length=SYMBOL_MIN_LEN,
        max_length=SYMBOL_MAX_LEN,
        pattern=SYMBOL_PATTERN,
        description=SYMBOL_DESCRIPTION,
    )
    side: str = Field(
        ..., min_length=1, max_length=10, description="Order side: BUY or SELL, any case"
    )
    quantity: Decimal = Field(..., gt=0, decimal_places=10)
    price: Optional[Decimal] = Field(default=None, gt=0, decimal_places=8)


class TradeResponse(BaseModel):
    """Response schema for a persisted trade."""

    id: UUID
    user_id: UUID
    symbol: str
    side: str
    quantity: Decimal
    price: Decimal
    total: Decimal
    fee: Decimal
    created_at: datetime


class TradeHistoryResponse(BaseModel):
    """Response schema for the trade history endpoint."""

    trades: list[TradeResponse]


class HoldingItem(BaseModel):
    """A single valued holding in the portfolio response."""

    symbol: str
    quantity: Decimal
    avg_price: Decimal
    current_price: Decimal
    market_value: Decimal
    cost_basis: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_pct: Decimal
    price_available: bool


class PortfolioResponse(BaseModel):
    """Response schema for the portfolio valuation endpoint."""

    user_id: UUID
    cash_balance: Decimal
    holdings_value: Decimal
    total_value: Decimal
    cost_basis: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_pct: Decimal
    realized_pnl: Decimal
    holdings: list[HoldingItem]


class AuditDiscrepancyItem(BaseModel):
    """One difference between stored state and the trade ledger."""

    field: str
    expected: str
    actual: str


class AuditResponse(BaseModel):
    """Response schema for the account audit endpoint."""

    user_id: UUID
    consistent: bool
    trade_count: int
    expected_balance: Decimal
    actual_balance: Decimal
    realized_pnl: Decimal
    fees_paid: Decimal
    discrepancies: list[AuditDiscrepancyItem]


class MarketPriceItem(BaseModel):
    """A single current market price."""

    symbol: str
    price: Decimal


class MarketPricesRequest(BaseModel):
    """Request schema for a batch price lookup.

    Attributes:
        symbols: 1-50 asset symbols, any case.
    """

    symbols: list[
        Annotated[
            str,
            Field(
                min_length=SYMBOL_MIN_LEN,
                max_length=SYMBOL_MAX_LEN,
                pattern=SYMBOL_PATTERN,
            ),
        ]
    ] = Field(..., min_length=1, max_length=MAX_BATCH_SYMBOLS)


class MarketPricesResponse(BaseModel):
    """Response schema for the market prices endpoint."""

    prices: list[MarketPriceItem]


class PricePointItem(BaseModel):
    """One sample of a price history."""

    timestamp: datetime
    price: Decimal


class PriceHistoryResponse(BaseModel):
    """Response schema for the price history endpoint."""

    symbol: str
    days: int
    prices: list[PricePointItem]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str


class ErrorResponse(BaseModel):
    """Standard error response returned by all error handlers."""

    error: str
    kind: str
    detail: str | None = None

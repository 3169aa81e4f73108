"""
Domain entities for the portfolio bounded context.

Entities represent core business objects with identity and lifecycle.
They contain no framework imports and no IO operations.
All money and quantity fields are Decimal.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

FEE_RATE = Decimal("0.001")
STARTING_BALANCE = Decimal("10000")

# Fixed scale for persisted money/quantity values.
DECIMAL_PLACES = 18
QUANTUM = Decimal(1).scaleb(-DECIMAL_PLACES)

SUPPORTED_SYMBOLS = (
    "BTC",
    "ETH",
    "USDT",
    "USDC",
    "XMR",
    "SOL",
    "BNB",
    "ADA",
    "DOGE",
    "AVAX",
    "LINK",
    "DOT",
)


class TradeSide(Enum):
    """Direction of a trade."""

    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class User:
    """An account holding a virtual cash balance.

    The balance is mutated only by the balance ledger.
    """

    id: UUID
    name: str
    email: str
    balance: Decimal
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class TradeDraft:
    """A fully priced trade that has not been persisted yet."""

    user_id: UUID
    symbol: str
    side: TradeSide
    quantity: Decimal
    price: Decimal
    total: Decimal
    fee: Decimal


@dataclass(frozen=True)
class Trade:
    """An executed trade. Append-only audit record, never updated."""

    id: UUID
    user_id: UUID
    symbol: str
    side: TradeSide
    quantity: Decimal
    price: Decimal
    total: Decimal
    fee: Decimal
    created_at: datetime

    @property
    def cash_flow(self) -> Decimal:
        """Signed change this trade applied to the cash balance."""
        if self.side is TradeSide.BUY:
            return -(self.total + self.fee)
        return self.total - self.fee


@dataclass(frozen=True)
class Holding:
    """An open position in one symbol.

    Invariant: quantity > 0 for every persisted holding.
    """

    user_id: UUID
    symbol: str
    quantity: Decimal
    avg_price: Decimal

    @property
    def cost_basis(self) -> Decimal:
        """Quantity times average acquisition price."""
        return self.quantity * self.avg_price


@dataclass(frozen=True)
class PricePoint:
    """One sample of an asset's USD price history."""

    timestamp: datetime
    price: Decimal


@dataclass(frozen=True)
class Quote:
    """Resolved execution price, total and fee for an order."""

    price: Decimal
    total: Decimal
    fee: Decimal

    @property
    def buy_cost(self) -> Decimal:
        """Cash required to fill a BUY at this quote."""
        return self.total + self.fee


def to_storage_scale(value: Decimal) -> Decimal:
    """Round ``value`` to DECIMAL_PLACES only when it carries more digits.

    Values with a positive exponent (``4.6E+4``) are rescaled to integers.
    """
    exponent = value.as_tuple().exponent
    if exponent < -DECIMAL_PLACES:
        return value.quantize(QUANTUM, rounding=ROUND_HALF_EVEN)
    if exponent > 0:
        return value.quantize(Decimal(1))
    return value

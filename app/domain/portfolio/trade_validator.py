"""
Domain service: Trade validation.

Pure checks of a proposed order against the account state.
No IO, no side effects; calling twice with the same inputs
gives the same outcome.
"""

from decimal import Decimal
from typing import Optional

from app.domain.portfolio.entities import Holding, Quote, TradeSide
from app.domain.portfolio.errors import (
    InsufficientFundsError,
    InsufficientQuantityError,
    InvalidOrderError,
    NoPositionError,
)


def parse_side(value: str | TradeSide) -> TradeSide:
    """Return the TradeSide for a case-insensitive string.

    Raises:
        InvalidOrderError: If the side is not BUY or SELL.
    """
    if isinstance(value, TradeSide):
        return value
    try:
        return TradeSide(str(value).strip().upper())
    except ValueError:
        raise InvalidOrderError(f"unsupported side '{value}'") from None


def validate_order(
    symbol: str, quantity: Decimal, price: Optional[Decimal] = None
) -> None:
    """Check the shape of an order before any lookup happens.

    Args:
        symbol: Canonical (uppercase) asset symbol.
        quantity: Requested quantity.
        price: Optional explicit execution price.

    Raises:
        InvalidOrderError: On empty symbol, non-positive quantity or
            non-positive explicit price.
    """
    if not symbol or not symbol.strip():
        raise InvalidOrderError("symbol must not be empty")
    if not quantity.is_finite() or quantity <= 0:
        raise InvalidOrderError("quantity must be greater than zero")
    if price is not None and (not price.is_finite() or price <= 0):
        raise InvalidOrderError("price must be greater than zero")


def validate_trade(
    side: TradeSide,
    symbol: str,
    quantity: Decimal,
    balance: Decimal,
    holding: Optional[Holding],
    quote: Quote,
) -> None:
    """Check a priced order against the current balance and holding.

    Args:
        side: BUY or SELL.
        symbol: Canonical asset symbol.
        quantity: Requested quantity.
        balance: Current cash balance of the user.
        holding: Current holding for the symbol, if any.
        quote: Resolved price, total and fee.

    Raises:
        InsufficientFundsError: BUY costs more than the balance.
        NoPositionError: SELL of a symbol that is not held.
        InsufficientQuantityError: SELL of more than is held.
    """
    if side is TradeSide.BUY:
        if balance < quote.buy_cost:
            raise InsufficientFundsError(
                required=str(quote.buy_cost), available=str(balance)
            )
        return

    if holding is None:
        raise NoPositionError(symbol)
    if holding.quantity < quantity:
        raise InsufficientQuantityError(
            symbol, requested=str(quantity), available=str(holding.quantity)
        )

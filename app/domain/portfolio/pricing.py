"""
Domain service: Execution pricing and fees.

Resolves the execution price of an order (explicit or from the
price oracle) and computes the trade total and fee. Never mutates state.
"""

import logging
from decimal import Decimal
from typing import Optional

from app.domain.portfolio.entities import FEE_RATE, Quote, to_storage_scale
from app.domain.portfolio.errors import (
    InvalidOrderError,
    PriceUnavailableError,
    SymbolNotFoundError,
)
from app.domain.portfolio.ports import PriceOracle

logger = logging.getLogger(__name__)


def compute_fee(total: Decimal, fee_rate: Decimal = FEE_RATE) -> Decimal:
    """Return the fee charged on a trade total, at the storage scale."""
    return to_storage_scale(total * fee_rate)


def build_quote(
    quantity: Decimal, price: Decimal, fee_rate: Decimal = FEE_RATE
) -> Quote:
    """Return the quote for filling ``quantity`` at ``price``."""
    total = quantity * price
    return Quote(price=price, total=total, fee=compute_fee(total, fee_rate))


class PricingResolver:
    """Resolves execution quotes for orders.

    An explicit positive price is used verbatim (limit-style demo
    orders). Otherwise the current price is taken from the oracle.
    """

    def __init__(self, oracle: PriceOracle, fee_rate: Decimal = FEE_RATE) -> None:
        self._oracle = oracle
        self._fee_rate = fee_rate

    def resolve(
        self, symbol: str, quantity: Decimal, price: Optional[Decimal] = None
    ) -> Quote:
        """Return the quote for an order.

        Args:
            symbol: Canonical asset symbol.
            quantity: Order quantity.
            price: Optional explicit execution price.

        Returns:
            Quote with price, total = quantity x price and fee.

        Raises:
            InvalidOrderError: If an explicit price is not positive.
            SymbolNotFoundError: If the oracle does not know the symbol.
            PriceUnavailableError: On any other oracle failure.
        """
        if price is not None:
            if price <= 0:
                raise InvalidOrderError("price must be greater than zero")
            return build_quote(quantity, price, self._fee_rate)

        try:
            market_price = self._oracle.get_price(symbol)
        except (SymbolNotFoundError, PriceUnavailableError):
            raise
        except Exception as exc:
            logger.warning("Price oracle failed for %s: %s", symbol, type(exc).__name__)
            raise PriceUnavailableError(symbol, "price oracle error") from exc

        if market_price <= 0:
            raise PriceUnavailableError(symbol, "oracle returned a non-positive price")
        return build_quote(quantity, market_price, self._fee_rate)

"""
Domain service: Position accounting.

Applies an executed trade to the user's holding for the traded symbol,
maintaining a weighted-average cost basis:

    BUY, no holding   -> create (quantity, avg_price = execution price)
    BUY, holding      -> quantity += q, avg_price = (q0 * avg0 + total) / (q0 + q)
    SELL, remaining>0 -> quantity -= q, avg_price unchanged
    SELL, remaining<=0 -> delete the holding

Realized P&L is not stored; it is derived at read time from the trades.
"""

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Optional
from uuid import UUID

from app.domain.portfolio.entities import Holding, TradeSide, to_storage_scale
from app.domain.portfolio.errors import NoPositionError
from app.domain.portfolio.ports import LedgerStore


@dataclass(frozen=True)
class PositionUpdate:
    """The single holding mutation a trade requires.

    ``quantity`` and ``avg_price`` are None when the holding is closed.
    """

    symbol: str
    quantity: Optional[Decimal]
    avg_price: Optional[Decimal]

    @property
    def closes_position(self) -> bool:
        return self.quantity is None


def weighted_average_price(
    existing_quantity: Decimal,
    existing_avg_price: Decimal,
    total: Decimal,
    new_quantity: Decimal,
) -> Decimal:
    """Return the cost basis per unit after adding ``total`` worth of units."""
    with localcontext() as ctx:
        ctx.prec = 60
        avg = (existing_quantity * existing_avg_price + total) / new_quantity
        return to_storage_scale(avg)


def plan_position(
    existing: Optional[Holding],
    symbol: str,
    side: TradeSide,
    quantity: Decimal,
    price: Decimal,
    total: Decimal,
) -> PositionUpdate:
    """Compute the holding mutation for a trade without performing it.

    Raises:
        NoPositionError: For a SELL without an existing holding.
    """
    if side is TradeSide.BUY:
        if existing is None:
            return PositionUpdate(symbol=symbol, quantity=quantity, avg_price=price)
        new_quantity = existing.quantity + quantity
        return PositionUpdate(
            symbol=symbol,
            quantity=new_quantity,
            avg_price=weighted_average_price(
                existing.quantity, existing.avg_price, total, new_quantity
            ),
        )

    if existing is None:
        raise NoPositionError(symbol)
    remaining = existing.quantity - quantity
    if remaining <= 0:
        return PositionUpdate(symbol=symbol, quantity=None, avg_price=None)
    return PositionUpdate(symbol=symbol, quantity=remaining, avg_price=existing.avg_price)


class PositionAccountant:
    """Writes position changes through the ledger store.

    Performs exactly one holding mutation per trade. Not safe to retry
    without re-reading the holding first.
    """

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def apply(
        self,
        user_id: UUID,
        existing: Optional[Holding],
        symbol: str,
        side: TradeSide,
        quantity: Decimal,
        price: Decimal,
        total: Decimal,
    ) -> Optional[Holding]:
        """Apply a trade to the holding and return the new holding, if any."""
        update = plan_position(existing, symbol, side, quantity, price, total)
        if update.closes_position:
            self._store.delete_holding(user_id, symbol)
            return None
        return self._store.upsert_holding(
            user_id, symbol, update.quantity, update.avg_price
        )

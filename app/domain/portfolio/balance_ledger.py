"""
Domain service: Cash balance accounting.

The single place where a user's cash balance changes after account
creation. The fee always adds to the cost of a BUY and reduces the
proceeds of a SELL.
"""

from decimal import Decimal
from uuid import UUID

from app.domain.portfolio.entities import Quote, TradeSide
from app.domain.portfolio.ports import LedgerStore


def next_balance(
    balance: Decimal, side: TradeSide, total: Decimal, fee: Decimal
) -> Decimal:
    """Return the balance after settling a trade."""
    if side is TradeSide.BUY:
        return balance - (total + fee)
    return balance + (total - fee)


class BalanceLedger:
    """Writes balance changes through the ledger store."""

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def apply(
        self, user_id: UUID, balance: Decimal, side: TradeSide, quote: Quote
    ) -> Decimal:
        """Settle a trade against ``balance`` and persist the result.

        Returns:
            The new balance.
        """
        new_balance = next_balance(balance, side, quote.total, quote.fee)
        self._store.set_user_balance(user_id, new_balance)
        return new_balance

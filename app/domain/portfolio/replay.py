"""
Domain service: Ledger replay.

Rebuilds the balance and positions implied by a user's append-only
trade ledger. Used for read-time realized P&L and for audits that
detect drift between the ledger and the stored derived state
(left behind by failures in the partial-failure window).

Pure business logic. No IO.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from app.domain.portfolio.entities import Holding, Trade, TradeSide
from app.domain.portfolio.position_accountant import plan_position


@dataclass(frozen=True)
class RealizedPnl:
    """Profit or loss locked in by one SELL trade."""

    trade_id: UUID
    symbol: str
    quantity: Decimal
    price: Decimal
    avg_price: Decimal

    @property
    def amount(self) -> Decimal:
        """(execution price - average cost) x sold quantity, before fees."""
        return (self.price - self.avg_price) * self.quantity


@dataclass
class LedgerReplay:
    """State reconstructed from a trade ledger."""

    balance: Decimal
    positions: dict[str, Holding] = field(default_factory=dict)
    realized: list[RealizedPnl] = field(default_factory=list)
    fees_paid: Decimal = Decimal("0")
    skipped_trades: list[UUID] = field(default_factory=list)

    @property
    def realized_pnl(self) -> Decimal:
        return sum((r.amount for r in self.realized), Decimal("0"))


def replay_trades(
    user_id: UUID, trades: Iterable[Trade], starting_balance: Decimal
) -> LedgerReplay:
    """Replay trades oldest first, applying the engine's accounting rules.

    A SELL with no position to sell from cannot have been produced by the
    engine; it is recorded in ``skipped_trades`` and otherwise ignored for
    positions, but its cash flow still counts toward the balance.

    Args:
        user_id: Owner of the trades.
        trades: Trades in insertion order.
        starting_balance: Balance granted at account creation.

    Returns:
        The reconstructed ledger state.
    """
    replay = LedgerReplay(balance=starting_balance)

    for trade in trades:
        replay.balance += trade.cash_flow
        replay.fees_paid += trade.fee

        existing: Optional[Holding] = replay.positions.get(trade.symbol)
        if trade.side is TradeSide.SELL:
            if existing is None:
                replay.skipped_trades.append(trade.id)
                continue
            replay.realized.append(
                RealizedPnl(
                    trade_id=trade.id,
                    symbol=trade.symbol,
                    quantity=min(trade.quantity, existing.quantity),
                    price=trade.price,
                    avg_price=existing.avg_price,
                )
            )

        update = plan_position(
            existing, trade.symbol, trade.side, trade.quantity, trade.price, trade.total
        )
        if update.closes_position:
            replay.positions.pop(trade.symbol, None)
        else:
            replay.positions[trade.symbol] = Holding(
                user_id=user_id,
                symbol=trade.symbol,
                quantity=update.quantity,
                avg_price=update.avg_price,
            )

    return replay

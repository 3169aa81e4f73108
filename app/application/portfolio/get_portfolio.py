"""
Use case: Value a user's portfolio at current market prices.

Input: GetPortfolioQuery (user_id)
Output: PortfolioResult
Side effects: None (read-only query).
Failure cases: UserNotFoundError.

Holdings whose price cannot be fetched are valued at their average
price with zero unrealized P&L and flagged as such.
"""

import logging
from decimal import ROUND_HALF_EVEN, Decimal

from app.application.portfolio.dtos import (
    GetPortfolioQuery,
    HoldingValuation,
    PortfolioResult,
)
from app.domain.portfolio.entities import STARTING_BALANCE, Holding
from app.domain.portfolio.errors import PriceUnavailableError, UserNotFoundError
from app.domain.portfolio.ports import LedgerStore, PriceOracle
from app.domain.portfolio.replay import replay_trades

logger = logging.getLogger(__name__)

PCT_QUANTUM = Decimal("0.01")
ZERO = Decimal("0")


def _pct(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return ZERO
    return (part / whole * 100).quantize(PCT_QUANTUM, rounding=ROUND_HALF_EVEN)


def value_holding(holding: Holding, price: Decimal | None) -> HoldingValuation:
    """Value one holding; ``price`` None means the market price is unknown."""
    current_price = price if price is not None else holding.avg_price
    market_value = holding.quantity * current_price
    cost_basis = holding.cost_basis
    pnl = market_value - cost_basis
    return HoldingValuation(
        symbol=holding.symbol,
        quantity=holding.quantity,
        avg_price=holding.avg_price,
        current_price=current_price,
        market_value=market_value,
        cost_basis=cost_basis,
        unrealized_pnl=pnl,
        unrealized_pnl_pct=_pct(pnl, cost_basis),
        price_available=price is not None,
    )


class GetPortfolioUseCase:
    """Combines stored balance and holdings with live prices."""

    def __init__(self, store: LedgerStore, oracle: PriceOracle) -> None:
        self._store = store
        self._oracle = oracle

    def execute(self, query: GetPortfolioQuery) -> PortfolioResult:
        """Run the portfolio valuation use case.

        Args:
            query: The user whose portfolio is valued.

        Returns:
            Cash, per-holding valuations and portfolio totals.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        user = self._store.get_user(query.user_id)
        if user is None:
            raise UserNotFoundError(str(query.user_id))

        holdings = self._store.list_holdings(user.id)
        prices: dict[str, Decimal] = {}
        if holdings:
            try:
                prices = self._oracle.get_prices([h.symbol for h in holdings])
            except PriceUnavailableError as exc:
                logger.warning(
                    "Valuing portfolio %s at cost: %s", user.id, exc.message
                )

        valuations = [value_holding(h, prices.get(h.symbol)) for h in holdings]
        holdings_value = sum((v.market_value for v in valuations), ZERO)
        cost_basis = sum((v.cost_basis for v in valuations), ZERO)
        unrealized = holdings_value - cost_basis

        trades = self._store.list_trades(user.id, newest_first=False)
        realized = replay_trades(user.id, trades, STARTING_BALANCE).realized_pnl

        logger.info(
            "Valued portfolio %s: %d holdings, %d priced",
            user.id,
            len(valuations),
            sum(1 for v in valuations if v.price_available),
        )

        return PortfolioResult(
            user_id=user.id,
            cash_balance=user.balance,
            holdings_value=holdings_value,
            total_value=user.balance + holdings_value,
            cost_basis=cost_basis,
            unrealized_pnl=unrealized,
            unrealized_pnl_pct=_pct(unrealized, cost_basis),
            realized_pnl=realized,
            holdings=valuations,
        )

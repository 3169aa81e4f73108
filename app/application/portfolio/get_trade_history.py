"""
Use case: List a user's trades, newest first.

Input: GetTradeHistoryQuery (user_id, limit)
Output: list[TradeResult]
Side effects: None (read-only query).
Failure cases: UserNotFoundError.
"""

import logging

from app.application.portfolio.dtos import GetTradeHistoryQuery, TradeResult
from app.application.portfolio.execute_trade import to_trade_result
from app.domain.portfolio.errors import UserNotFoundError
from app.domain.portfolio.ports import LedgerStore

logger = logging.getLogger(__name__)

MAX_LIMIT = 500


class GetTradeHistoryUseCase:
    """Reads the append-only trade ledger of one user."""

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def execute(self, query: GetTradeHistoryQuery) -> list[TradeResult]:
        """Return up to ``query.limit`` trades, newest first."""
        if self._store.get_user(query.user_id) is None:
            raise UserNotFoundError(str(query.user_id))

        limit = max(1, min(query.limit, MAX_LIMIT))
        logger.info("Listing trades: user=%s, limit=%d", query.user_id, limit)
        trades = self._store.list_trades(query.user_id, limit=limit, newest_first=True)
        return [to_trade_result(t) for t in trades]

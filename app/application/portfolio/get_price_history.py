"""
Use case: USD price history of one asset.

Input: GetPriceHistoryQuery (symbol, days)
Output: PriceHistoryResult
Side effects: None.
Failure cases: InvalidQueryError (empty symbol, days outside 1-365),
    SymbolNotFoundError, PriceUnavailableError.
"""

import logging

from app.application.portfolio.dtos import (
    GetPriceHistoryQuery,
    PriceHistoryResult,
    PricePointResult,
)
from app.domain.portfolio.errors import InvalidQueryError
from app.domain.portfolio.ports import PriceOracle

logger = logging.getLogger(__name__)

MIN_DAYS = 1
MAX_DAYS = 365
DEFAULT_DAYS = 7


class GetPriceHistoryUseCase:
    """Reads a symbol's price history from the oracle."""

    def __init__(self, oracle: PriceOracle) -> None:
        self._oracle = oracle

    def execute(self, query: GetPriceHistoryQuery) -> PriceHistoryResult:
        """Run the price history use case.

        Args:
            query: Symbol and number of days.

        Returns:
            The samples, oldest first.

        Raises:
            InvalidQueryError: If the symbol is empty or days is out of range.
        """
        symbol = query.symbol.strip().upper()
        if not symbol:
            raise InvalidQueryError("symbol must not be empty")
        if not MIN_DAYS <= query.days <= MAX_DAYS:
            raise InvalidQueryError(
                f"days must be between {MIN_DAYS} and {MAX_DAYS}"
            )

        points = self._oracle.get_history(symbol, query.days)
        logger.info(
            "Fetched price history: %s, days=%d, samples=%d",
            symbol,
            query.days,
            len(points),
        )
        return PriceHistoryResult(
            symbol=symbol,
            days=query.days,
            prices=[PricePointResult(timestamp=p.timestamp, price=p.price) for p in points],
        )

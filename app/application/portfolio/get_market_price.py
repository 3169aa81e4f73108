"""
Use case: Current price of one asset.

Input: GetMarketPriceQuery (symbol)
Output: MarketPriceResult
Side effects: None.
Failure cases: InvalidQueryError, SymbolNotFoundError, PriceUnavailableError.
"""

import logging

from app.application.portfolio.dtos import GetMarketPriceQuery, MarketPriceResult
from app.domain.portfolio.errors import InvalidQueryError
from app.domain.portfolio.ports import PriceOracle

logger = logging.getLogger(__name__)


class GetMarketPriceUseCase:
    """Looks up a single symbol's current price."""

    def __init__(self, oracle: PriceOracle) -> None:
        self._oracle = oracle

    def execute(self, query: GetMarketPriceQuery) -> MarketPriceResult:
        symbol = query.symbol.strip().upper()
        if not symbol:
            raise InvalidQueryError("symbol must not be empty")

        price = self._oracle.get_price(symbol)
        logger.info("Fetched market price: %s=%s", symbol, price)
        return MarketPriceResult(symbol=symbol, price=price)

"""
Use case: Current prices of supported assets.

Input: GetMarketPricesQuery (symbols), or nothing for every supported symbol
Output: list[MarketPriceResult], in request order
Side effects: None.
Failure cases: PriceUnavailableError when the oracle cannot be reached.

Symbols the oracle does not know or cannot price are skipped.
"""

import logging
from typing import Optional

from app.application.portfolio.dtos import GetMarketPricesQuery, MarketPriceResult
from app.domain.portfolio.entities import SUPPORTED_SYMBOLS
from app.domain.portfolio.ports import PriceOracle

logger = logging.getLogger(__name__)


class GetMarketPricesUseCase:
    """Fetches several symbols' prices in one oracle call."""

    def __init__(self, oracle: PriceOracle) -> None:
        self._oracle = oracle

    def execute(
        self, query: Optional[GetMarketPricesQuery] = None
    ) -> list[MarketPriceResult]:
        if query is None:
            symbols = list(SUPPORTED_SYMBOLS)
        else:
            symbols = list(
                dict.fromkeys(s.strip().upper() for s in query.symbols if s.strip())
            )
        if not symbols:
            return []

        prices = self._oracle.get_prices(symbols)
        logger.info("Fetched %d of %d market prices", len(prices), len(symbols))
        return [
            MarketPriceResult(symbol=symbol, price=prices[symbol])
            for symbol in symbols
            if symbol in prices
        ]

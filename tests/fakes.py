"""
In-memory test doubles for the portfolio ports.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional

from app.domain.portfolio.entities import PricePoint
from app.domain.portfolio.errors import SymbolNotFoundError
from app.domain.portfolio.ports import PriceOracle

HISTORY_START = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakePriceOracle(PriceOracle):
    """Price oracle serving fixed prices, or failing with ``error``.

    History is one flat daily sample per requested day at the fixed price.
    """

    def __init__(
        self,
        prices: Optional[dict[str, Decimal]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.prices = dict(prices or {})
        self.error = error
        self.calls: list[str] = []
        self.history_calls: list[tuple[str, int]] = []

    def get_price(self, symbol: str) -> Decimal:
        self.calls.append(symbol)
        if self.error is not None:
            raise self.error
        if symbol not in self.prices:
            raise SymbolNotFoundError(symbol)
        return self.prices[symbol]

    def get_prices(self, symbols: Iterable[str]) -> dict[str, Decimal]:
        symbols = list(symbols)
        self.calls.extend(symbols)
        if self.error is not None:
            raise self.error
        return {s: self.prices[s] for s in symbols if s in self.prices}

    def get_history(self, symbol: str, days: int) -> list[PricePoint]:
        self.history_calls.append((symbol, days))
        if self.error is not None:
            raise self.error
        if symbol not in self.prices:
            raise SymbolNotFoundError(symbol)
        return [
            PricePoint(HISTORY_START + timedelta(days=i), self.prices[symbol])
            for i in range(days)
        ]

"""
Adapter: CoinGecko price oracle.

Implements the PriceOracle port over the CoinGecko ``/simple/price``
(current prices) and ``/coins/{id}/market_chart`` (history) endpoints.
Prices are parsed straight into Decimal.

Throttling: a sliding one-minute request budget. When the budget is
spent the oracle raises PriceUnavailableError instead of calling
upstream. Prices are cached per symbol for a short TTL so repeated
lookups within the TTL do not spend budget.
"""

import logging
import threading
import time
from collections import deque
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

import httpx

from app.domain.portfolio.entities import PricePoint
from app.domain.portfolio.errors import PriceUnavailableError, SymbolNotFoundError
from app.domain.portfolio.ports import PriceOracle

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
VS_CURRENCY = "usd"
WINDOW_SECONDS = 60.0

# Symbol -> CoinGecko coin id.
COIN_IDS = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "USDT": "tether",
    "USDC": "usd-coin",
    "XMR": "monero",
    "SOL": "solana",
    "BNB": "binancecoin",
    "ADA": "cardano",
    "DOGE": "dogecoin",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "DOT": "polkadot",
}


class CoinGeckoPriceOracle(PriceOracle):
    """Current USD prices from CoinGecko.

    Args:
        base_url: API root, without trailing slash.
        timeout: HTTP timeout in seconds.
        max_requests_per_minute: Upstream request budget.
        cache_ttl: Seconds a fetched price stays fresh.
        api_key: Optional demo API key.
        client: Optional preconfigured httpx.Client (tests inject one
            with a MockTransport).
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        max_requests_per_minute: int = 10,
        cache_ttl: float = 30.0,
        api_key: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        headers = {"accept": "application/json"}
        if api_key:
            headers["x-cg-demo-api-key"] = api_key
        self._client = client or httpx.Client(
            base_url=base_url, timeout=timeout, headers=headers
        )
        self._max_requests = max_requests_per_minute
        self._cache_ttl = cache_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._request_times: deque[float] = deque()
        self._cache: dict[str, tuple[Decimal, float]] = {}

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    # ------------------------------------------------------------------
    # PriceOracle
    # ------------------------------------------------------------------

    def get_price(self, symbol: str) -> Decimal:
        symbol = symbol.upper()
        if symbol not in COIN_IDS:
            raise SymbolNotFoundError(symbol)

        prices, unpriced = self._lookup([symbol])
        if symbol in unpriced:
            raise PriceUnavailableError(symbol, "malformed upstream price")
        if symbol not in prices:
            raise SymbolNotFoundError(symbol)
        return prices[symbol]

    def get_prices(self, symbols: Iterable[str]) -> dict[str, Decimal]:
        known = [s.upper() for s in symbols if s.upper() in COIN_IDS]
        if not known:
            return {}
        prices, _ = self._lookup(known)
        return prices

    def get_history(self, symbol: str, days: int) -> list[PricePoint]:
        symbol = symbol.upper()
        if symbol not in COIN_IDS:
            raise SymbolNotFoundError(symbol)

        params = {"vs_currency": VS_CURRENCY, "days": str(days)}
        if days > 1:
            params["interval"] = "daily"
        payload = self._request(
            f"/coins/{COIN_IDS[symbol]}/market_chart", params, symbol
        )

        samples = payload.get("prices") if isinstance(payload, dict) else None
        if not isinstance(samples, list):
            raise PriceUnavailableError(symbol, "malformed upstream response")

        history: list[PricePoint] = []
        for sample in samples:
            if (
                not isinstance(sample, list)
                or len(sample) != 2
                or not all(isinstance(v, Decimal) for v in sample)
            ):
                logger.warning("Skipping malformed history sample for %s", symbol)
                continue
            millis, price = sample
            history.append(
                PricePoint(
                    timestamp=datetime.fromtimestamp(
                        int(millis) / 1000, tz=timezone.utc
                    ),
                    price=price,
                )
            )
        logger.debug("Fetched %d history samples for %s", len(history), symbol)
        return history

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lookup(self, symbols: list[str]) -> tuple[dict[str, Decimal], set[str]]:
        """Return cached prices, fetching the stale ones in one call.

        The second element lists symbols upstream answered for without a
        usable price.
        """
        now = self._clock()
        result: dict[str, Decimal] = {}
        missing: list[str] = []
        with self._lock:
            for symbol in dict.fromkeys(symbols):
                cached = self._cache.get(symbol)
                if cached and now - cached[1] < self._cache_ttl:
                    result[symbol] = cached[0]
                else:
                    missing.append(symbol)

        unpriced: set[str] = set()
        if missing:
            fetched, unpriced = self._fetch(missing)
            with self._lock:
                for symbol, price in fetched.items():
                    self._cache[symbol] = (price, self._clock())
            result.update(fetched)
        return result, unpriced

    def _acquire_budget(self, label: str) -> None:
        """Spend one request from the sliding-window budget."""
        with self._lock:
            now = self._clock()
            while self._request_times and now - self._request_times[0] >= WINDOW_SECONDS:
                self._request_times.popleft()
            if len(self._request_times) >= self._max_requests:
                logger.warning("Price oracle budget exhausted; refusing %s", label)
                raise PriceUnavailableError(label, "rate limit reached, retry later")
            self._request_times.append(now)

    def _request(self, path: str, params: dict[str, str], label: str) -> Any:
        """GET ``path`` within the budget and return the decoded JSON body.

        Numbers are decoded as Decimal.
        """
        self._acquire_budget(label)
        try:
            response = self._client.get(path, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("Price oracle timed out for %s", label)
            raise PriceUnavailableError(label, "upstream timeout") from exc
        except httpx.HTTPError as exc:
            logger.warning("Price oracle transport error for %s: %s", label, exc)
            raise PriceUnavailableError(label, "upstream unreachable") from exc

        if response.status_code == 429:
            logger.warning("Price oracle rate limited upstream for %s", label)
            raise PriceUnavailableError(label, "upstream rate limit")
        if response.is_error:
            logger.warning(
                "Price oracle returned HTTP %d for %s", response.status_code, label
            )
            raise PriceUnavailableError(label, f"upstream HTTP {response.status_code}")

        try:
            return response.json(parse_float=Decimal, parse_int=Decimal)
        except ValueError as exc:
            raise PriceUnavailableError(label, "malformed upstream response") from exc

    def _fetch(self, symbols: list[str]) -> tuple[dict[str, Decimal], set[str]]:
        ids = {COIN_IDS[s]: s for s in symbols}
        label = ",".join(symbols)
        payload = self._request(
            "/simple/price", {"ids": ",".join(ids), "vs_currencies": VS_CURRENCY}, label
        )
        if not isinstance(payload, dict):
            raise PriceUnavailableError(label, "malformed upstream response")

        prices: dict[str, Decimal] = {}
        unpriced: set[str] = set()
        for coin_id, symbol in ids.items():
            quote = payload.get(coin_id)
            if not isinstance(quote, dict) or VS_CURRENCY not in quote:
                continue
            price = quote[VS_CURRENCY]
            # null, strings and booleans are not prices
            if not isinstance(price, Decimal) or not price.is_finite() or price <= 0:
                logger.warning("Unusable price for %s: %r", symbol, price)
                unpriced.add(symbol)
                continue
            prices[symbol] = price
        logger.debug("Fetched prices: %s", prices)
        return prices, unpriced

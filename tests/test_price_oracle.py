"""
Tests for the CoinGecko price oracle adapter.

Upstream is replaced with an httpx.MockTransport; the clock is injected
so the request budget and cache can be tested without sleeping.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal

import httpx
import pytest

from app.application.portfolio.dtos import ExecuteTradeCommand, GetPortfolioQuery
from app.application.portfolio.execute_trade import ExecuteTradeUseCase
from app.application.portfolio.get_portfolio import GetPortfolioUseCase
from app.domain.portfolio.errors import PriceUnavailableError, SymbolNotFoundError
from app.infrastructure.portfolio.coingecko_oracle import CoinGeckoPriceOracle


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _oracle(handler, clock=None, **kwargs) -> CoinGeckoPriceOracle:
    client = httpx.Client(
        base_url="https://api.coingecko.test/api/v3",
        transport=httpx.MockTransport(handler),
    )
    return CoinGeckoPriceOracle(client=client, clock=clock or FakeClock(), **kwargs)


def _prices(payload: str):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, content=payload.encode())

    return handler, requests


class TestGetPrice:
    """Tests for single-symbol lookups."""

    def test_price_parsed_as_exact_decimal(self) -> None:
        handler, requests = _prices('{"bitcoin": {"usd": 45123.45}}')
        oracle = _oracle(handler)

        assert oracle.get_price("btc") == Decimal("45123.45")
        assert requests[0].url.path.endswith("/simple/price")
        assert requests[0].url.params["ids"] == "bitcoin"
        assert requests[0].url.params["vs_currencies"] == "usd"

    def test_unknown_symbol_never_calls_upstream(self) -> None:
        handler, requests = _prices("{}")
        with pytest.raises(SymbolNotFoundError):
            _oracle(handler).get_price("NOPE")
        assert requests == []

    def test_missing_from_response(self) -> None:
        handler, _ = _prices("{}")
        with pytest.raises(SymbolNotFoundError):
            _oracle(handler).get_price("BTC")

    def test_cached_within_ttl(self) -> None:
        clock = FakeClock()
        handler, requests = _prices('{"ethereum": {"usd": 3000}}')
        oracle = _oracle(handler, clock=clock, cache_ttl=30.0)

        oracle.get_price("ETH")
        clock.now += 10
        oracle.get_price("ETH")
        assert len(requests) == 1

        clock.now += 30
        oracle.get_price("ETH")
        assert len(requests) == 2


class TestGetPrices:
    """Tests for batch lookups."""

    def test_one_request_for_many_symbols(self) -> None:
        handler, requests = _prices(
            '{"bitcoin": {"usd": 50000}, "solana": {"usd": 150.5}}'
        )
        prices = _oracle(handler).get_prices(["BTC", "SOL", "NOPE"])

        assert prices == {"BTC": Decimal("50000"), "SOL": Decimal("150.5")}
        assert len(requests) == 1

    def test_only_unknown_symbols(self) -> None:
        handler, requests = _prices("{}")
        assert _oracle(handler).get_prices(["NOPE"]) == {}
        assert requests == []


class TestGetHistory:
    """Tests for market_chart lookups."""

    def test_samples_parsed_oldest_first(self) -> None:
        handler, requests = _prices(
            '{"prices": [[1700000000000, 45000.5], [1700086400000, 45500]]}'
        )
        history = _oracle(handler).get_history("btc", 30)

        assert [p.price for p in history] == [Decimal("45000.5"), Decimal("45500")]
        assert history[0].timestamp == datetime(
            2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc
        )
        assert requests[0].url.path.endswith("/coins/bitcoin/market_chart")
        assert requests[0].url.params["vs_currency"] == "usd"
        assert requests[0].url.params["days"] == "30"
        assert requests[0].url.params["interval"] == "daily"

    def test_single_day_uses_default_granularity(self) -> None:
        handler, requests = _prices('{"prices": []}')
        assert _oracle(handler).get_history("ETH", 1) == []
        assert "interval" not in requests[0].url.params

    def test_malformed_samples_skipped(self) -> None:
        handler, _ = _prices(
            '{"prices": [[1700000000000, 1.5], ["x", 2], [1700000000000], null]}'
        )
        history = _oracle(handler).get_history("DOGE", 7)
        assert [p.price for p in history] == [Decimal("1.5")]

    def test_unknown_symbol_never_calls_upstream(self) -> None:
        handler, requests = _prices("{}")
        with pytest.raises(SymbolNotFoundError):
            _oracle(handler).get_history("NOPE", 7)
        assert requests == []

    @pytest.mark.parametrize("payload", ["{}", '{"prices": null}', "[]"])
    def test_missing_series(self, payload: str) -> None:
        handler, _ = _prices(payload)
        with pytest.raises(PriceUnavailableError) as exc_info:
            _oracle(handler).get_history("BTC", 7)
        assert exc_info.value.reason == "malformed upstream response"

    def test_shares_request_budget(self) -> None:
        handler, requests = _prices('{"prices": []}')
        oracle = _oracle(handler, max_requests_per_minute=1)

        oracle.get_history("BTC", 7)
        with pytest.raises(PriceUnavailableError):
            oracle.get_history("BTC", 7)
        assert len(requests) == 1


class TestFailures:
    """Upstream problems surface as PriceUnavailableError."""

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(PriceUnavailableError) as exc_info:
            _oracle(handler).get_price("BTC")
        assert exc_info.value.reason == "upstream timeout"

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(PriceUnavailableError):
            _oracle(handler).get_price("BTC")

    @pytest.mark.parametrize("status", [429, 500, 503])
    def test_error_status(self, status: int) -> None:
        with pytest.raises(PriceUnavailableError):
            _oracle(lambda request: httpx.Response(status)).get_price("BTC")

    def test_malformed_body(self) -> None:
        handler, _ = _prices("<html>")
        with pytest.raises(PriceUnavailableError):
            _oracle(handler).get_price("BTC")

    def test_non_object_body(self) -> None:
        handler, _ = _prices("[1, 2]")
        with pytest.raises(PriceUnavailableError):
            _oracle(handler).get_price("BTC")

    @pytest.mark.parametrize("value", ["null", '"45000"', "true", "0", "-1", "NaN"])
    def test_unusable_price(self, value: str) -> None:
        handler, _ = _prices('{"bitcoin": {"usd": ' + value + "}}")
        with pytest.raises(PriceUnavailableError) as exc_info:
            _oracle(handler).get_price("BTC")
        assert exc_info.value.reason == "malformed upstream price"

    def test_unusable_price_dropped_from_batch(self) -> None:
        handler, _ = _prices('{"bitcoin": {"usd": null}, "ethereum": {"usd": 3000}}')
        prices = _oracle(handler).get_prices(["BTC", "ETH"])
        assert prices == {"ETH": Decimal("3000")}

    def test_unusable_price_values_holding_at_cost(self, store, user) -> None:
        handler, _ = _prices('{"bitcoin": {"usd": null}}')
        oracle = _oracle(handler)
        ExecuteTradeUseCase(store, oracle).execute(
            ExecuteTradeCommand(
                user_id=user.id,
                symbol="BTC",
                side="BUY",
                quantity=Decimal("0.1"),
                price=Decimal("45000"),
            )
        )

        result = GetPortfolioUseCase(store, oracle).execute(
            GetPortfolioQuery(user_id=user.id)
        )

        assert result.holdings[0].price_available is False
        assert result.holdings[0].current_price == Decimal("45000")

    def test_request_budget(self) -> None:
        clock = FakeClock()
        handler, requests = _prices(json.dumps({"bitcoin": {"usd": 1}}))
        oracle = _oracle(handler, clock=clock, max_requests_per_minute=2, cache_ttl=0)

        oracle.get_price("BTC")
        oracle.get_price("BTC")
        with pytest.raises(PriceUnavailableError) as exc_info:
            oracle.get_price("BTC")
        assert "rate limit" in exc_info.value.reason
        assert len(requests) == 2

        clock.now += 61
        assert oracle.get_price("BTC") == Decimal("1")

"""
Tests for the portfolio domain layer.

Validation, pricing, position and balance rules, ledger replay.
Pure logic: no database, no network.
"""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from app.domain.portfolio.balance_ledger import BalanceLedger, next_balance
from app.domain.portfolio.entities import (
    FEE_RATE,
    Holding,
    Quote,
    Trade,
    TradeSide,
    to_storage_scale,
)
from app.domain.portfolio.errors import (
    InsufficientFundsError,
    InsufficientQuantityError,
    InvalidOrderError,
    InvalidQueryError,
    NoPositionError,
    PersistenceError,
    PriceUnavailableError,
    SymbolNotFoundError,
)
from app.domain.portfolio.position_accountant import (
    PositionAccountant,
    plan_position,
    weighted_average_price,
)
from app.domain.portfolio.pricing import PricingResolver, build_quote, compute_fee
from app.domain.portfolio.replay import replay_trades
from app.domain.portfolio.trade_validator import (
    parse_side,
    validate_order,
    validate_trade,
)

USER_ID = uuid4()


def _holding(quantity: str, avg_price: str, symbol: str = "BTC") -> Holding:
    return Holding(
        user_id=USER_ID,
        symbol=symbol,
        quantity=Decimal(quantity),
        avg_price=Decimal(avg_price),
    )


def _trade(side: TradeSide, quantity: str, price: str, symbol: str = "BTC") -> Trade:
    quote = build_quote(Decimal(quantity), Decimal(price))
    return Trade(
        id=uuid4(),
        user_id=USER_ID,
        symbol=symbol,
        side=side,
        quantity=Decimal(quantity),
        price=quote.price,
        total=quote.total,
        fee=quote.fee,
        created_at=datetime.now(timezone.utc),
    )


class TestParseSide:
    """Tests for side parsing."""

    def test_case_insensitive(self) -> None:
        assert parse_side("buy") is TradeSide.BUY
        assert parse_side(" Sell ") is TradeSide.SELL

    def test_enum_passes_through(self) -> None:
        assert parse_side(TradeSide.SELL) is TradeSide.SELL

    def test_unknown_side_rejected(self) -> None:
        with pytest.raises(InvalidOrderError):
            parse_side("HOLD")


class TestValidateOrder:
    """Tests for the order shape checks."""

    @pytest.mark.parametrize("quantity", ["0", "-1", "NaN", "Infinity"])
    def test_non_positive_or_non_finite_quantity(self, quantity: str) -> None:
        with pytest.raises(InvalidOrderError):
            validate_order("BTC", Decimal(quantity))

    def test_empty_symbol(self) -> None:
        with pytest.raises(InvalidOrderError):
            validate_order("  ", Decimal("1"))

    def test_non_positive_explicit_price(self) -> None:
        with pytest.raises(InvalidOrderError):
            validate_order("BTC", Decimal("1"), Decimal("0"))

    def test_valid_order_passes(self) -> None:
        validate_order("BTC", Decimal("0.1"), Decimal("45000"))
        validate_order("BTC", Decimal("0.1"))


class TestValidateTrade:
    """Tests for the balance and holding checks."""

    QUOTE = build_quote(Decimal("0.1"), Decimal("45000"))

    def test_buy_requires_total_plus_fee(self) -> None:
        # 4500 + 4.5 fee: 4500 alone is not enough
        with pytest.raises(InsufficientFundsError) as exc_info:
            validate_trade(
                TradeSide.BUY, "BTC", Decimal("0.1"), Decimal("4500"), None, self.QUOTE
            )
        assert exc_info.value.required == "4504.5000"

    def test_buy_with_exact_balance_passes(self) -> None:
        validate_trade(
            TradeSide.BUY, "BTC", Decimal("0.1"), Decimal("4504.5"), None, self.QUOTE
        )

    def test_sell_without_holding(self) -> None:
        with pytest.raises(NoPositionError):
            validate_trade(
                TradeSide.SELL, "BTC", Decimal("0.1"), Decimal("0"), None, self.QUOTE
            )

    def test_sell_more_than_held(self) -> None:
        with pytest.raises(InsufficientQuantityError):
            validate_trade(
                TradeSide.SELL,
                "BTC",
                Decimal("0.1"),
                Decimal("0"),
                _holding("0.05", "40000"),
                self.QUOTE,
            )

    def test_sell_entire_holding_passes(self) -> None:
        validate_trade(
            TradeSide.SELL,
            "BTC",
            Decimal("0.1"),
            Decimal("0"),
            _holding("0.1", "40000"),
            self.QUOTE,
        )

    def test_repeated_validation_gives_same_outcome(self) -> None:
        holding = _holding("0.05", "40000")
        messages = []
        for _ in range(2):
            with pytest.raises(InsufficientQuantityError) as exc_info:
                validate_trade(
                    TradeSide.SELL, "BTC", Decimal("0.1"), Decimal("0"), holding, self.QUOTE
                )
            messages.append(exc_info.value.message)
        assert messages[0] == messages[1]
        assert holding == _holding("0.05", "40000")

    def test_sell_ignores_balance(self) -> None:
        validate_trade(
            TradeSide.SELL,
            "BTC",
            Decimal("0.1"),
            Decimal("-5"),
            _holding("1", "40000"),
            self.QUOTE,
        )


class TestPricing:
    """Tests for fee computation and quote resolution."""

    def test_fee_is_one_tenth_of_a_percent(self) -> None:
        assert FEE_RATE == Decimal("0.001")
        assert compute_fee(Decimal("4500")) == Decimal("4.5")

    def test_fee_is_never_negative(self) -> None:
        assert compute_fee(Decimal("0.000001")) >= 0

    def test_quote_total(self) -> None:
        quote = build_quote(Decimal("0.1"), Decimal("45000"))
        assert quote.total == Decimal("4500")
        assert quote.fee == Decimal("4.5")
        assert quote.buy_cost == Decimal("4504.5")

    def test_explicit_price_skips_oracle(self) -> None:
        oracle = MagicMock()
        quote = PricingResolver(oracle).resolve("BTC", Decimal("2"), Decimal("10"))
        assert quote.price == Decimal("10")
        oracle.get_price.assert_not_called()

    def test_market_price_from_oracle(self) -> None:
        oracle = MagicMock()
        oracle.get_price.return_value = Decimal("3000")
        quote = PricingResolver(oracle).resolve("ETH", Decimal("2"))
        assert quote.total == Decimal("6000")
        assert quote.fee == Decimal("6")
        oracle.get_price.assert_called_once_with("ETH")

    def test_unknown_symbol_passes_through(self) -> None:
        oracle = MagicMock()
        oracle.get_price.side_effect = SymbolNotFoundError("XYZ")
        with pytest.raises(SymbolNotFoundError):
            PricingResolver(oracle).resolve("XYZ", Decimal("1"))

    def test_unexpected_oracle_error_becomes_price_unavailable(self) -> None:
        oracle = MagicMock()
        oracle.get_price.side_effect = RuntimeError("socket closed")
        with pytest.raises(PriceUnavailableError):
            PricingResolver(oracle).resolve("BTC", Decimal("1"))

    def test_non_positive_market_price(self) -> None:
        oracle = MagicMock()
        oracle.get_price.return_value = Decimal("0")
        with pytest.raises(PriceUnavailableError):
            PricingResolver(oracle).resolve("BTC", Decimal("1"))


class TestPositionPlanning:
    """Tests for weighted-average position accounting."""

    def test_first_buy_opens_position_at_price(self) -> None:
        update = plan_position(
            None, "BTC", TradeSide.BUY, Decimal("0.1"), Decimal("45000"), Decimal("4500")
        )
        assert update.quantity == Decimal("0.1")
        assert update.avg_price == Decimal("45000")

    def test_second_buy_averages_cost(self) -> None:
        update = plan_position(
            _holding("0.1", "45000"),
            "BTC",
            TradeSide.BUY,
            Decimal("0.1"),
            Decimal("47000"),
            Decimal("4700"),
        )
        assert update.quantity == Decimal("0.2")
        assert update.avg_price == Decimal("46000")

    def test_partial_sell_keeps_avg_price(self) -> None:
        update = plan_position(
            _holding("0.3", "46000"),
            "BTC",
            TradeSide.SELL,
            Decimal("0.1"),
            Decimal("50000"),
            Decimal("5000"),
        )
        assert update.quantity == Decimal("0.2")
        assert update.avg_price == Decimal("46000")
        assert not update.closes_position

    def test_full_sell_closes_position(self) -> None:
        update = plan_position(
            _holding("0.2", "46000"),
            "BTC",
            TradeSide.SELL,
            Decimal("0.2"),
            Decimal("48000"),
            Decimal("9600"),
        )
        assert update.closes_position

    def test_sell_without_position(self) -> None:
        with pytest.raises(NoPositionError):
            plan_position(
                None, "ETH", TradeSide.SELL, Decimal("1"), Decimal("1"), Decimal("1")
            )

    def test_average_never_uses_exponent_notation(self) -> None:
        avg = weighted_average_price(
            Decimal("0.1"), Decimal("45000"), Decimal("4700.0"), Decimal("0.200")
        )
        assert avg == Decimal("46000")
        assert "E" not in str(avg)

    def test_average_is_rounded_to_storage_scale(self) -> None:
        avg = weighted_average_price(
            Decimal("1"), Decimal("1"), Decimal("1"), Decimal("3")
        )
        assert avg == Decimal("0.666666666666666667")


class TestStorageScale:
    """Tests for to_storage_scale."""

    def test_short_values_untouched(self) -> None:
        assert str(to_storage_scale(Decimal("4.5000"))) == "4.5000"

    def test_long_values_rounded_half_even(self) -> None:
        value = Decimal("0." + "0" * 17 + "25")
        assert to_storage_scale(value) == Decimal("0." + "0" * 17 + "2")


class TestPositionAccountant:
    """Tests for the store writes of the position accountant."""

    def test_close_deletes_holding(self) -> None:
        store = MagicMock()
        result = PositionAccountant(store).apply(
            USER_ID,
            _holding("1", "10"),
            "BTC",
            TradeSide.SELL,
            Decimal("1"),
            Decimal("12"),
            Decimal("12"),
        )
        assert result is None
        store.delete_holding.assert_called_once_with(USER_ID, "BTC")
        store.upsert_holding.assert_not_called()

    def test_buy_upserts_holding(self) -> None:
        store = MagicMock()
        PositionAccountant(store).apply(
            USER_ID, None, "BTC", TradeSide.BUY, Decimal("1"), Decimal("10"), Decimal("10")
        )
        store.upsert_holding.assert_called_once_with(
            USER_ID, "BTC", Decimal("1"), Decimal("10")
        )


class TestBalanceLedger:
    """Tests for cash balance settlement."""

    def test_buy_debits_total_and_fee(self) -> None:
        assert next_balance(
            Decimal("10000"), TradeSide.BUY, Decimal("4500"), Decimal("4.5")
        ) == Decimal("5495.5")

    def test_sell_credits_total_less_fee(self) -> None:
        assert next_balance(
            Decimal("790.8"), TradeSide.SELL, Decimal("9600"), Decimal("9.6")
        ) == Decimal("10381.2")

    def test_apply_persists_new_balance(self) -> None:
        store = MagicMock()
        quote = Quote(price=Decimal("10"), total=Decimal("100"), fee=Decimal("0.1"))
        new_balance = BalanceLedger(store).apply(
            USER_ID, Decimal("1000"), TradeSide.BUY, quote
        )
        assert new_balance == Decimal("899.9")
        store.set_user_balance.assert_called_once_with(USER_ID, Decimal("899.9"))


class TestLedgerReplay:
    """Tests for rebuilding state from the trade ledger."""

    def test_replay_matches_engine_accounting(self) -> None:
        trades = [
            _trade(TradeSide.BUY, "0.1", "45000"),
            _trade(TradeSide.BUY, "0.1", "47000"),
            _trade(TradeSide.SELL, "0.2", "48000"),
        ]
        replay = replay_trades(USER_ID, trades, Decimal("10000"))

        assert replay.balance == Decimal("10381.2")
        assert replay.positions == {}
        assert replay.realized_pnl == Decimal("400")
        assert replay.fees_paid == Decimal("18.8")
        assert replay.skipped_trades == []

    def test_cash_flows_sum_to_balance_change(self) -> None:
        trades = [
            _trade(TradeSide.BUY, "0.1", "45000"),
            _trade(TradeSide.SELL, "0.1", "48000"),
        ]
        assert [t.cash_flow for t in trades] == [Decimal("-4504.5"), Decimal("4795.2")]
        replay = replay_trades(USER_ID, trades, Decimal("10000"))
        assert replay.balance == Decimal("10000") + sum(t.cash_flow for t in trades)

    def test_open_position_survives(self) -> None:
        replay = replay_trades(
            USER_ID, [_trade(TradeSide.BUY, "2", "3000", "ETH")], Decimal("10000")
        )
        assert replay.positions["ETH"].quantity == Decimal("2")
        assert replay.positions["ETH"].avg_price == Decimal("3000")

    def test_sell_without_position_is_skipped(self) -> None:
        orphan = _trade(TradeSide.SELL, "1", "100", "SOL")
        replay = replay_trades(USER_ID, [orphan], Decimal("10000"))
        assert replay.skipped_trades == [orphan.id]
        assert replay.balance == Decimal("10099.9")


class TestDomainErrors:
    """Tests for error kinds and attributes."""

    def test_kinds_are_stable(self) -> None:
        assert InvalidOrderError("x").kind == "InvalidOrder"
        assert SymbolNotFoundError("X").kind == "SymbolNotFound"
        assert PriceUnavailableError("X", "down").kind == "PriceUnavailable"
        assert InsufficientFundsError("2", "1").kind == "InsufficientFunds"
        assert InsufficientQuantityError("X", "2", "1").kind == "InsufficientQuantity"
        assert NoPositionError("X").kind == "NoPosition"
        assert PersistenceError("op", "boom").kind == "PersistenceError"
        assert InvalidQueryError("days").kind == "InvalidQuery"

    def test_persistence_error_has_no_trade_by_default(self) -> None:
        assert PersistenceError("insert_trade", "boom").trade_id is None

    def test_message_includes_reason(self) -> None:
        assert "quantity" in InvalidOrderError("quantity must be positive").message

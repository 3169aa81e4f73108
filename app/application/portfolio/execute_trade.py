"""
Use case: Execute a simulated BUY/SELL order for a user.

Input: ExecuteTradeCommand (user_id, symbol, side, quantity, optional price)
Output: TradeResult (the persisted trade)
Side effects: Appends a trade record, updates the user's balance,
    creates/updates/deletes the user's holding for the symbol.
Failure cases:
    - InvalidOrderError, UserNotFoundError, SymbolNotFoundError,
      PriceUnavailableError, InsufficientFundsError, NoPositionError,
      InsufficientQuantityError: raised before any write.
    - PersistenceError: raised from any write. When raised after the
      trade record exists, the error carries the trade id and the
      balance/holding may be stale until reconciled out of band.

Stages: RECEIVED -> VALIDATED -> PRICED -> RECORDED -> BALANCE_UPDATED
-> POSITION_UPDATED, or FAILED with the error kind.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Optional

from app.application.portfolio.dtos import ExecuteTradeCommand, TradeResult
from app.application.portfolio.locks import UserLockRegistry
from app.domain.portfolio.balance_ledger import BalanceLedger
from app.domain.portfolio.entities import FEE_RATE, Trade, TradeDraft
from app.domain.portfolio.errors import (
    PersistenceError,
    PortfolioDomainError,
    UserNotFoundError,
)
from app.domain.portfolio.ports import LedgerStore, PriceOracle
from app.domain.portfolio.position_accountant import PositionAccountant
from app.domain.portfolio.pricing import PricingResolver
from app.domain.portfolio.trade_validator import (
    parse_side,
    validate_order,
    validate_trade,
)

logger = logging.getLogger(__name__)


class TradeStage(Enum):
    """Progress of an order through the engine."""

    RECEIVED = "received"
    VALIDATED = "validated"
    PRICED = "priced"
    RECORDED = "recorded"
    BALANCE_UPDATED = "balance_updated"
    POSITION_UPDATED = "position_updated"
    FAILED = "failed"


# Stages after which the trade record exists.
_WRITTEN_STAGES = frozenset(
    {TradeStage.RECORDED, TradeStage.BALANCE_UPDATED}
)


class ExecuteTradeUseCase:
    """Orchestrates one order: validate, price, record, settle, reposition.

    Pricing and validation complete before the first write. The trade
    record is written first so the audit trail exists even if a later
    write fails; no compensating writes are attempted.
    All work for one user runs under that user's lock.
    """

    def __init__(
        self,
        store: LedgerStore,
        oracle: PriceOracle,
        locks: Optional[UserLockRegistry] = None,
        fee_rate: Decimal = FEE_RATE,
    ) -> None:
        self._store = store
        self._pricing = PricingResolver(oracle, fee_rate=fee_rate)
        self._balance_ledger = BalanceLedger(store)
        self._accountant = PositionAccountant(store)
        self._locks = locks or UserLockRegistry()

    def execute(self, command: ExecuteTradeCommand) -> TradeResult:
        """Run the trade execution use case.

        Args:
            command: The order to execute.

        Returns:
            The persisted trade with its computed total and fee.

        Raises:
            PortfolioDomainError: Any of the failure cases listed above.
        """
        symbol = command.symbol.strip().upper()
        stage = TradeStage.RECEIVED
        trade: Optional[Trade] = None

        logger.info(
            "Executing %s order: user=%s, symbol=%s, quantity=%s, price=%s",
            command.side,
            command.user_id,
            symbol,
            command.quantity,
            command.price if command.price is not None else "market",
        )

        try:
            side = parse_side(command.side)
            validate_order(symbol, command.quantity, command.price)
            stage = self._advance(stage, TradeStage.VALIDATED)

            with self._locks.hold(command.user_id):
                user = self._store.get_user(command.user_id)
                if user is None:
                    raise UserNotFoundError(str(command.user_id))
                holding = self._store.get_holding(command.user_id, symbol)

                quote = self._pricing.resolve(symbol, command.quantity, command.price)
                stage = self._advance(stage, TradeStage.PRICED)

                validate_trade(
                    side, symbol, command.quantity, user.balance, holding, quote
                )

                trade = self._store.insert_trade(
                    TradeDraft(
                        user_id=user.id,
                        symbol=symbol,
                        side=side,
                        quantity=command.quantity,
                        price=quote.price,
                        total=quote.total,
                        fee=quote.fee,
                    )
                )
                stage = self._advance(stage, TradeStage.RECORDED)

                new_balance = self._balance_ledger.apply(
                    user.id, user.balance, side, quote
                )
                stage = self._advance(stage, TradeStage.BALANCE_UPDATED)

                self._accountant.apply(
                    user.id,
                    holding,
                    symbol,
                    side,
                    command.quantity,
                    quote.price,
                    quote.total,
                )
                stage = self._advance(stage, TradeStage.POSITION_UPDATED)
        except PersistenceError as exc:
            if stage in _WRITTEN_STAGES and trade is not None:
                exc.trade_id = trade.id
                logger.error(
                    "Trade %s recorded but %s failed after stage %s; "
                    "balance/holding for user %s need reconciliation",
                    trade.id,
                    exc.operation,
                    stage.value,
                    command.user_id,
                )
            self._fail(stage, exc)
            raise
        except PortfolioDomainError as exc:
            self._fail(stage, exc)
            raise

        logger.info(
            "Executed trade %s: %s %s %s @ %s, total=%s, fee=%s, balance=%s",
            trade.id,
            trade.side.value,
            trade.quantity,
            trade.symbol,
            trade.price,
            trade.total,
            trade.fee,
            new_balance,
        )
        return to_trade_result(trade)

    @staticmethod
    def _advance(current: TradeStage, target: TradeStage) -> TradeStage:
        logger.debug("Trade stage %s -> %s", current.value, target.value)
        return target

    @staticmethod
    def _fail(stage: TradeStage, exc: PortfolioDomainError) -> None:
        level = logging.ERROR if isinstance(exc, PersistenceError) else logging.WARNING
        logger.log(
            level,
            "Trade %s at stage %s: kind=%s, %s",
            TradeStage.FAILED.value,
            stage.value,
            exc.kind,
            exc.message,
        )


def to_trade_result(trade: Trade) -> TradeResult:
    """Map a Trade entity to its output DTO."""
    return TradeResult(
        id=trade.id,
        user_id=trade.user_id,
        symbol=trade.symbol,
        side=trade.side.value,
        quantity=trade.quantity,
        price=trade.price,
        total=trade.total,
        fee=trade.fee,
        created_at=trade.created_at,
    )

"""
Use case: Audit an account against its trade ledger.

Input: AuditAccountQuery (user_id)
Output: AuditReport
Side effects: None. Discrepancies are reported, never repaired.
Failure cases: UserNotFoundError.

Replays the append-only trade ledger from the starting balance and
compares the result with the stored balance and holdings. Drift shows
up when a trade was recorded but a later write of the same order failed.
"""

import logging
from decimal import Decimal

from app.application.portfolio.dtos import (
    AuditAccountQuery,
    AuditDiscrepancy,
    AuditReport,
)
from app.domain.portfolio.entities import STARTING_BALANCE
from app.domain.portfolio.errors import UserNotFoundError
from app.domain.portfolio.ports import LedgerStore
from app.domain.portfolio.replay import replay_trades

logger = logging.getLogger(__name__)


class AuditAccountUseCase:
    """Checks the accounting identity for one account."""

    def __init__(
        self, store: LedgerStore, starting_balance: Decimal = STARTING_BALANCE
    ) -> None:
        self._store = store
        self._starting_balance = starting_balance

    def execute(self, query: AuditAccountQuery) -> AuditReport:
        """Run the audit use case.

        Args:
            query: The account to audit.

        Returns:
            A report listing every difference between ledger and store.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        user = self._store.get_user(query.user_id)
        if user is None:
            raise UserNotFoundError(str(query.user_id))

        trades = self._store.list_trades(user.id, newest_first=False)
        replay = replay_trades(user.id, trades, self._starting_balance)
        stored = {h.symbol: h for h in self._store.list_holdings(user.id)}

        discrepancies: list[AuditDiscrepancy] = []
        if replay.balance != user.balance:
            discrepancies.append(
                AuditDiscrepancy(
                    field="balance",
                    expected=str(replay.balance),
                    actual=str(user.balance),
                )
            )

        for symbol in sorted(set(replay.positions) | set(stored)):
            expected = replay.positions.get(symbol)
            actual = stored.get(symbol)
            expected_repr = (
                f"{expected.quantity}@{expected.avg_price}" if expected else "none"
            )
            actual_repr = f"{actual.quantity}@{actual.avg_price}" if actual else "none"
            if (
                expected is None
                or actual is None
                or expected.quantity != actual.quantity
                or expected.avg_price != actual.avg_price
            ):
                discrepancies.append(
                    AuditDiscrepancy(
                        field=f"holding:{symbol}",
                        expected=expected_repr,
                        actual=actual_repr,
                    )
                )

        for trade_id in replay.skipped_trades:
            discrepancies.append(
                AuditDiscrepancy(
                    field=f"trade:{trade_id}",
                    expected="SELL against an open position",
                    actual="no position to sell from",
                )
            )

        if discrepancies:
            logger.warning(
                "Audit of %s found %d discrepancies", user.id, len(discrepancies)
            )
        else:
            logger.info("Audit of %s consistent over %d trades", user.id, len(trades))

        return AuditReport(
            user_id=user.id,
            trade_count=len(trades),
            expected_balance=replay.balance,
            actual_balance=user.balance,
            realized_pnl=replay.realized_pnl,
            fees_paid=replay.fees_paid,
            discrepancies=discrepancies,
        )

"""
CLI entry point for ledger maintenance.

Usage:
    # Create the users, trades and holdings tables
    python -m app.cli init-db

    # Replay an account's trade ledger and report drift
    python -m app.cli audit --user-id 7f0c...

The audit command exits with status 1 when the account has drifted
from its trade ledger. It never repairs anything.
"""

import argparse
import logging
import sys
from uuid import UUID

from sqlalchemy import create_engine

from app.application.portfolio.audit_account import AuditAccountUseCase
from app.application.portfolio.dtos import AuditAccountQuery
from app.core.config import settings
from app.domain.portfolio.errors import PortfolioDomainError
from app.infrastructure.portfolio.ledger_store import SqlLedgerStore
from app.shared.logging import configure_logging

logger = logging.getLogger(__name__)


def _store(args: argparse.Namespace) -> SqlLedgerStore:
    url = args.database_url or settings.get_database_url()
    return SqlLedgerStore(create_engine(url, pool_pre_ping=True))


def cmd_init_db(args: argparse.Namespace) -> int:
    """Create the ledger tables."""
    _store(args).create_tables()
    logger.info("Ledger tables ready.")
    return 0


def cmd_audit(args: argparse.Namespace) -> int:
    """Audit one account against its trade ledger."""
    report = AuditAccountUseCase(_store(args)).execute(
        AuditAccountQuery(user_id=args.user_id)
    )
    logger.info(
        "User %s | trades=%d | balance expected=%s actual=%s | realized P&L=%s | fees=%s",
        report.user_id,
        report.trade_count,
        report.expected_balance,
        report.actual_balance,
        report.realized_pnl,
        report.fees_paid,
    )
    for d in report.discrepancies:
        logger.warning("%s: expected %s, found %s", d.field, d.expected, d.actual)

    if report.consistent:
        logger.info("Account is consistent with its trade ledger.")
        return 0
    logger.error("Account drifted: %d discrepancies.", len(report.discrepancies))
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="app.cli", description="Cryptofolio ledger maintenance"
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL; defaults to the application settings",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init-db", help="Create ledger tables")
    p_init.set_defaults(func=cmd_init_db)

    p_audit = sub.add_parser("audit", help="Audit an account against its trades")
    p_audit.add_argument("--user-id", type=UUID, required=True)
    p_audit.set_defaults(func=cmd_audit)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(level=settings.log_level)
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except PortfolioDomainError as exc:
        logger.error("%s: %s", exc.kind, exc.message)
        return 2


if __name__ == "__main__":
    sys.exit(main())

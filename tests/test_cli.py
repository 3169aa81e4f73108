"""
Tests for the ledger maintenance CLI.
"""

from decimal import Decimal

from sqlalchemy import create_engine

from app.cli import main
from app.infrastructure.portfolio.ledger_store import SqlLedgerStore


def test_init_db_then_audit(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    assert main(["--database-url", url, "init-db"]) == 0

    engine = create_engine(url)
    store = SqlLedgerStore(engine)
    user = store.create_user("Ada", "ada@example.com", Decimal("10000"))

    assert main(["--database-url", url, "audit", "--user-id", str(user.id)]) == 0

    store.set_user_balance(user.id, Decimal("1"))
    assert main(["--database-url", url, "audit", "--user-id", str(user.id)]) == 1
    engine.dispose()


def test_audit_unknown_user(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    main(["--database-url", url, "init-db"])
    assert (
        main(
            [
                "--database-url",
                url,
                "audit",
                "--user-id",
                "00000000-0000-0000-0000-000000000000",
            ]
        )
        == 2
    )

"""
Shared fixtures for the portfolio tests.

The ledger store runs on in-memory SQLite; the price oracle is a
dictionary-backed fake so no test touches the network.
"""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.domain.portfolio.entities import STARTING_BALANCE
from app.infrastructure.portfolio.ledger_store import SqlLedgerStore
from tests.fakes import FakePriceOracle


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> SqlLedgerStore:
    store = SqlLedgerStore(engine)
    store.create_tables()
    return store


@pytest.fixture
def oracle() -> FakePriceOracle:
    return FakePriceOracle(
        {
            "BTC": Decimal("50000"),
            "ETH": Decimal("3000"),
            "DOGE": Decimal("0.1"),
        }
    )


@pytest.fixture
def user(store):
    return store.create_user("Ada Lovelace", "ada@example.com", STARTING_BALANCE)

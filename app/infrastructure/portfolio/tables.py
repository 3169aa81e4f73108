"""
SQLAlchemy table definitions for the ledger store.

Money and quantity columns use ExactDecimal: NUMERIC on PostgreSQL,
text on SQLite (which has no exact decimal storage).
"""

from decimal import Decimal

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Uuid,
)
from sqlalchemy.types import TypeDecorator

from app.domain.portfolio.entities import DECIMAL_PLACES


class ExactDecimal(TypeDecorator):
    """Decimal column that round-trips values without float conversion."""

    impl = Numeric(38, DECIMAL_PLACES)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(80))
        return dialect.type_descriptor(Numeric(38, DECIMAL_PLACES, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return str(Decimal(value))
        return Decimal(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(str(value))


metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("name", String(120), nullable=False),
    Column("email", String(320), nullable=False, unique=True),
    Column("balance", ExactDecimal, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

trades = Table(
    "trades",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", Uuid, nullable=False, unique=True),
    Column("user_id", Uuid, ForeignKey("users.id"), nullable=False),
    Column("symbol", String(20), nullable=False),
    Column("side", String(4), nullable=False),
    Column("quantity", ExactDecimal, nullable=False),
    Column("price", ExactDecimal, nullable=False),
    Column("total", ExactDecimal, nullable=False),
    Column("fee", ExactDecimal, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("ix_trades_user_seq", "user_id", "seq"),
)

holdings = Table(
    "holdings",
    metadata,
    Column("user_id", Uuid, ForeignKey("users.id"), primary_key=True),
    Column("symbol", String(20), primary_key=True),
    Column("quantity", ExactDecimal, nullable=False),
    Column("avg_price", ExactDecimal, nullable=False),
)

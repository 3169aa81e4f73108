"""
Adapter: Ledger store.

Implements the LedgerStore port with SQLAlchemy Core.
Each method runs in its own transaction, so every operation is atomic
for a single record and nothing wider. Database failures are raised
as PersistenceError.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterator, Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Engine, RowMapping
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.domain.portfolio.entities import Holding, Trade, TradeDraft, TradeSide, User
from app.domain.portfolio.errors import AccountAlreadyExistsError, PersistenceError
from app.domain.portfolio.ports import LedgerStore
from app.infrastructure.portfolio.tables import holdings, metadata, trades, users

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into PersistenceError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Ledger store %s failed: %s", operation, type(exc).__name__)
        raise PersistenceError(operation, type(exc).__name__) from exc


def _user(row: RowMapping) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        balance=row["balance"],
        created_at=row["created_at"],
    )


def _trade(row: RowMapping) -> Trade:
    return Trade(
        id=row["id"],
        user_id=row["user_id"],
        symbol=row["symbol"],
        side=TradeSide(row["side"]),
        quantity=row["quantity"],
        price=row["price"],
        total=row["total"],
        fee=row["fee"],
        created_at=row["created_at"],
    )


def _holding(row: RowMapping) -> Holding:
    return Holding(
        user_id=row["user_id"],
        symbol=row["symbol"],
        quantity=row["quantity"],
        avg_price=row["avg_price"],
    )


class SqlLedgerStore(LedgerStore):
    """SQL implementation of the ledger store.

    Works against PostgreSQL (psycopg2) in production and SQLite in tests.
    The engine is created once per process and injected.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def create_tables(self) -> None:
        """Create the users, trades and holdings tables if missing."""
        with _store_errors("create_tables"):
            metadata.create_all(self._engine)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, name: str, email: str, balance: Decimal) -> User:
        user = User(
            id=uuid4(),
            name=name,
            email=email,
            balance=balance,
            created_at=datetime.now(timezone.utc),
        )
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    insert(users).values(
                        id=user.id,
                        name=user.name,
                        email=user.email,
                        balance=user.balance,
                        created_at=user.created_at,
                    )
                )
        except IntegrityError as exc:
            raise AccountAlreadyExistsError(email) from exc
        except SQLAlchemyError as exc:
            logger.error("Ledger store create_user failed: %s", type(exc).__name__)
            raise PersistenceError("create_user", type(exc).__name__) from exc
        return user

    def get_user(self, user_id: UUID) -> Optional[User]:
        with _store_errors("get_user"), self._engine.connect() as conn:
            row = conn.execute(
                select(users).where(users.c.id == user_id)
            ).mappings().first()
        return _user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with _store_errors("get_user_by_email"), self._engine.connect() as conn:
            row = conn.execute(
                select(users).where(users.c.email == email)
            ).mappings().first()
        return _user(row) if row else None

    def set_user_balance(self, user_id: UUID, balance: Decimal) -> None:
        with _store_errors("set_user_balance"), self._engine.begin() as conn:
            result = conn.execute(
                update(users).where(users.c.id == user_id).values(balance=balance)
            )
        if result.rowcount == 0:
            raise PersistenceError("set_user_balance", f"no user {user_id}")

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    def insert_trade(self, draft: TradeDraft) -> Trade:
        trade = Trade(
            id=uuid4(),
            user_id=draft.user_id,
            symbol=draft.symbol,
            side=draft.side,
            quantity=draft.quantity,
            price=draft.price,
            total=draft.total,
            fee=draft.fee,
            created_at=datetime.now(timezone.utc),
        )
        with _store_errors("insert_trade"), self._engine.begin() as conn:
            conn.execute(
                insert(trades).values(
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
            )
        return trade

    def list_trades(
        self,
        user_id: UUID,
        limit: Optional[int] = None,
        newest_first: bool = True,
    ) -> list[Trade]:
        order = trades.c.seq.desc() if newest_first else trades.c.seq.asc()
        query = select(trades).where(trades.c.user_id == user_id).order_by(order)
        if limit is not None:
            query = query.limit(limit)
        with _store_errors("list_trades"), self._engine.connect() as conn:
            rows = conn.execute(query).mappings().all()
        return [_trade(row) for row in rows]

    # ------------------------------------------------------------------
    # Holdings
    # ------------------------------------------------------------------

    def get_holding(self, user_id: UUID, symbol: str) -> Optional[Holding]:
        with _store_errors("get_holding"), self._engine.connect() as conn:
            row = conn.execute(
                select(holdings).where(
                    holdings.c.user_id == user_id, holdings.c.symbol == symbol
                )
            ).mappings().first()
        return _holding(row) if row else None

    def list_holdings(self, user_id: UUID) -> list[Holding]:
        with _store_errors("list_holdings"), self._engine.connect() as conn:
            rows = conn.execute(
                select(holdings)
                .where(holdings.c.user_id == user_id)
                .order_by(holdings.c.symbol)
            ).mappings().all()
        return [_holding(row) for row in rows]

    def upsert_holding(
        self, user_id: UUID, symbol: str, quantity: Decimal, avg_price: Decimal
    ) -> Holding:
        with _store_errors("upsert_holding"), self._engine.begin() as conn:
            result = conn.execute(
                update(holdings)
                .where(holdings.c.user_id == user_id, holdings.c.symbol == symbol)
                .values(quantity=quantity, avg_price=avg_price)
            )
            if result.rowcount == 0:
                conn.execute(
                    insert(holdings).values(
                        user_id=user_id,
                        symbol=symbol,
                        quantity=quantity,
                        avg_price=avg_price,
                    )
                )
        return Holding(
            user_id=user_id, symbol=symbol, quantity=quantity, avg_price=avg_price
        )

    def delete_holding(self, user_id: UUID, symbol: str) -> None:
        with _store_errors("delete_holding"), self._engine.begin() as conn:
            conn.execute(
                delete(holdings).where(
                    holdings.c.user_id == user_id, holdings.c.symbol == symbol
                )
            )

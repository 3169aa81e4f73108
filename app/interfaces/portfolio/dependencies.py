"""
Dependency injection for the portfolio bounded context.

Provides FastAPI dependency functions that wire the process-wide
ledger store, price oracle and user lock registry (created once in the
application lifespan and kept on ``app.state``) into use cases via
constructor injection.
"""

from typing import Optional
from uuid import UUID

from fastapi import Header, Request

from app.application.portfolio.audit_account import AuditAccountUseCase
from app.application.portfolio.create_account import CreateAccountUseCase
from app.application.portfolio.execute_trade import ExecuteTradeUseCase
from app.application.portfolio.get_market_price import GetMarketPriceUseCase
from app.application.portfolio.get_market_prices import GetMarketPricesUseCase
from app.application.portfolio.get_portfolio import GetPortfolioUseCase
from app.application.portfolio.get_price_history import GetPriceHistoryUseCase
from app.application.portfolio.get_trade_history import GetTradeHistoryUseCase
from app.shared.errors.handlers import AuthenticationError


def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> UUID:
    """Return the caller's verified user id.

    Authentication happens upstream; it forwards the verified id in the
    X-User-Id header.
    """
    if not x_user_id:
        raise AuthenticationError("missing X-User-Id header")
    try:
        return UUID(x_user_id)
    except ValueError:
        raise AuthenticationError("malformed X-User-Id header") from None


def get_create_account_use_case(request: Request) -> CreateAccountUseCase:
    """Build CreateAccountUseCase with its infrastructure dependencies."""
    return CreateAccountUseCase(store=request.app.state.ledger_store)


def get_execute_trade_use_case(request: Request) -> ExecuteTradeUseCase:
    """Build ExecuteTradeUseCase with its infrastructure dependencies."""
    state = request.app.state
    return ExecuteTradeUseCase(
        store=state.ledger_store,
        oracle=state.price_oracle,
        locks=state.user_locks,
    )


def get_trade_history_use_case(request: Request) -> GetTradeHistoryUseCase:
    """Build GetTradeHistoryUseCase with its infrastructure dependencies."""
    return GetTradeHistoryUseCase(store=request.app.state.ledger_store)


def get_portfolio_use_case(request: Request) -> GetPortfolioUseCase:
    """Build GetPortfolioUseCase with its infrastructure dependencies."""
    state = request.app.state
    return GetPortfolioUseCase(store=state.ledger_store, oracle=state.price_oracle)


def get_audit_account_use_case(request: Request) -> AuditAccountUseCase:
    """Build AuditAccountUseCase with its infrastructure dependencies."""
    return AuditAccountUseCase(store=request.app.state.ledger_store)


def get_market_prices_use_case(request: Request) -> GetMarketPricesUseCase:
    """Build GetMarketPricesUseCase with its infrastructure dependencies."""
    return GetMarketPricesUseCase(oracle=request.app.state.price_oracle)


def get_market_price_use_case(request: Request) -> GetMarketPriceUseCase:
    """Build GetMarketPriceUseCase with its infrastructure dependencies."""
    return GetMarketPriceUseCase(oracle=request.app.state.price_oracle)


def get_price_history_use_case(request: Request) -> GetPriceHistoryUseCase:
    """Build GetPriceHistoryUseCase with its infrastructure dependencies."""
    return GetPriceHistoryUseCase(oracle=request.app.state.price_oracle)

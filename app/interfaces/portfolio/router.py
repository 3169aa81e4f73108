"""
FastAPI routers for the portfolio bounded context.

All routes delegate to use cases. No business logic here.
Input validation is handled by Pydantic schemas.
Error mapping is handled by centralized error handlers.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.application.portfolio.audit_account import AuditAccountUseCase
from app.application.portfolio.create_account import CreateAccountUseCase
from app.application.portfolio.dtos import (
    AuditAccountQuery,
    CreateAccountCommand,
    ExecuteTradeCommand,
    GetMarketPriceQuery,
    GetMarketPricesQuery,
    GetPortfolioQuery,
    GetPriceHistoryQuery,
    GetTradeHistoryQuery,
    MarketPriceResult,
    TradeResult,
)
from app.application.portfolio.execute_trade import ExecuteTradeUseCase
from app.application.portfolio.get_market_price import GetMarketPriceUseCase
from app.application.portfolio.get_market_prices import GetMarketPricesUseCase
from app.application.portfolio.get_portfolio import GetPortfolioUseCase
from app.application.portfolio.get_price_history import (
    DEFAULT_DAYS,
    GetPriceHistoryUseCase,
)
from app.application.portfolio.get_trade_history import (
    MAX_LIMIT,
    GetTradeHistoryUseCase,
)
from app.core.config import settings
from app.interfaces.portfolio.dependencies import (
    get_audit_account_use_case,
    get_create_account_use_case,
    get_current_user_id,
    get_execute_trade_use_case,
    get_market_price_use_case,
    get_market_prices_use_case,
    get_portfolio_use_case,
    get_price_history_use_case,
    get_trade_history_use_case,
)
from app.interfaces.portfolio.schemas import (
    SYMBOL_MAX_LEN,
    AccountResponse,
    AuditDiscrepancyItem,
    AuditResponse,
    CreateAccountRequest,
    ErrorResponse,
    HoldingItem,
    MarketPriceItem,
    MarketPricesRequest,
    MarketPricesResponse,
    PortfolioResponse,
    PriceHistoryResponse,
    PricePointItem,
    TradeHistoryResponse,
    TradeRequest,
    TradeResponse,
)
from app.shared.security.rate_limiting import limiter

router = APIRouter(prefix="/portfolio", tags=["portfolio"])
market_router = APIRouter(prefix="/market", tags=["market"])


def _trade_response(result: TradeResult) -> TradeResponse:
    return TradeResponse(
        id=result.id,
        user_id=result.user_id,
        symbol=result.symbol,
        side=result.side,
        quantity=result.quantity,
        price=result.price,
        total=result.total,
        fee=result.fee,
        created_at=result.created_at,
    )


@router.post(
    "/accounts",
    response_model=AccountResponse,
    status_code=201,
    responses={409: {"model": ErrorResponse}},
    summary="Open an account",
    description="Create a demo account funded with the starting balance.",
)
def create_account(
    request: CreateAccountRequest,
    use_case: CreateAccountUseCase = Depends(get_create_account_use_case),
) -> AccountResponse:
    """Open a new demo account."""
    result = use_case.execute(
        CreateAccountCommand(name=request.name, email=request.email)
    )
    return AccountResponse(
        id=result.id,
        name=result.name,
        email=result.email,
        balance=result.balance,
        created_at=result.created_at,
    )


@router.post(
    "/trades",
    response_model=TradeResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Execute a trade",
    description=(
        "Buy or sell an asset at the given price, or at the current market "
        "price when no price is given. A 0.1% fee applies to both sides."
    ),
)
@limiter.limit(settings.rate_limit_trades)
def execute_trade(
    request: Request,
    payload: TradeRequest,
    user_id: UUID = Depends(get_current_user_id),
    use_case: ExecuteTradeUseCase = Depends(get_execute_trade_use_case),
) -> TradeResponse:
    """Execute a simulated order for the authenticated user."""
    command = ExecuteTradeCommand(
        user_id=user_id,
        symbol=payload.symbol,
        side=payload.side,
        quantity=payload.quantity,
        price=payload.price,
    )
    return _trade_response(use_case.execute(command))


@router.get(
    "/trades",
    response_model=TradeHistoryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="List trades",
    description="Return the authenticated user's trades, newest first.",
)
def list_trades(
    limit: int = Query(default=settings.default_trade_history_limit, ge=1, le=MAX_LIMIT),
    user_id: UUID = Depends(get_current_user_id),
    use_case: GetTradeHistoryUseCase = Depends(get_trade_history_use_case),
) -> TradeHistoryResponse:
    """List the caller's trade history."""
    results = use_case.execute(GetTradeHistoryQuery(user_id=user_id, limit=limit))
    return TradeHistoryResponse(trades=[_trade_response(r) for r in results])


@router.get(
    "",
    response_model=PortfolioResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Portfolio valuation",
    description="Cash, holdings at current prices, and profit/loss totals.",
)
def get_portfolio(
    user_id: UUID = Depends(get_current_user_id),
    use_case: GetPortfolioUseCase = Depends(get_portfolio_use_case),
) -> PortfolioResponse:
    """Value the caller's portfolio."""
    result = use_case.execute(GetPortfolioQuery(user_id=user_id))
    return PortfolioResponse(
        user_id=result.user_id,
        cash_balance=result.cash_balance,
        holdings_value=result.holdings_value,
        total_value=result.total_value,
        cost_basis=result.cost_basis,
        unrealized_pnl=result.unrealized_pnl,
        unrealized_pnl_pct=result.unrealized_pnl_pct,
        realized_pnl=result.realized_pnl,
        holdings=[
            HoldingItem(
                symbol=h.symbol,
                quantity=h.quantity,
                avg_price=h.avg_price,
                current_price=h.current_price,
                market_value=h.market_value,
                cost_basis=h.cost_basis,
                unrealized_pnl=h.unrealized_pnl,
                unrealized_pnl_pct=h.unrealized_pnl_pct,
                price_available=h.price_available,
            )
            for h in result.holdings
        ],
    )


@router.get(
    "/audit",
    response_model=AuditResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Audit account",
    description=(
        "Replay the trade ledger and compare it with the stored balance "
        "and holdings. Read-only."
    ),
)
def audit_account(
    user_id: UUID = Depends(get_current_user_id),
    use_case: AuditAccountUseCase = Depends(get_audit_account_use_case),
) -> AuditResponse:
    """Audit the caller's account against its trade ledger."""
    report = use_case.execute(AuditAccountQuery(user_id=user_id))
    return AuditResponse(
        user_id=report.user_id,
        consistent=report.consistent,
        trade_count=report.trade_count,
        expected_balance=report.expected_balance,
        actual_balance=report.actual_balance,
        realized_pnl=report.realized_pnl,
        fees_paid=report.fees_paid,
        discrepancies=[
            AuditDiscrepancyItem(field=d.field, expected=d.expected, actual=d.actual)
            for d in report.discrepancies
        ],
    )


def _price_items(results: list[MarketPriceResult]) -> MarketPricesResponse:
    return MarketPricesResponse(
        prices=[MarketPriceItem(symbol=r.symbol, price=r.price) for r in results]
    )


@market_router.get(
    "/prices",
    response_model=MarketPricesResponse,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Market prices",
    description=(
        "Current USD prices of all supported assets, or of one asset when "
        "`symbol` is given."
    ),
)
def get_market_prices(
    symbol: Optional[str] = Query(default=None, max_length=SYMBOL_MAX_LEN),
    use_case: GetMarketPricesUseCase = Depends(get_market_prices_use_case),
    single_use_case: GetMarketPriceUseCase = Depends(get_market_price_use_case),
) -> MarketPricesResponse:
    """Return current prices of supported assets."""
    if symbol is not None:
        return _price_items([single_use_case.execute(GetMarketPriceQuery(symbol=symbol))])
    return _price_items(use_case.execute())


@market_router.post(
    "/prices",
    response_model=MarketPricesResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Batch market prices",
    description="Current USD prices of the given assets. Unknown assets are skipped.",
)
def get_market_prices_batch(
    payload: MarketPricesRequest,
    use_case: GetMarketPricesUseCase = Depends(get_market_prices_use_case),
) -> MarketPricesResponse:
    """Return current prices of the requested assets."""
    return _price_items(
        use_case.execute(GetMarketPricesQuery(symbols=tuple(payload.symbols)))
    )


@market_router.get(
    "/history",
    response_model=PriceHistoryResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Price history",
    description="USD price history of one asset over 1 to 365 days.",
)
def get_price_history(
    symbol: str = Query(..., max_length=SYMBOL_MAX_LEN),
    days: int = Query(default=DEFAULT_DAYS),
    use_case: GetPriceHistoryUseCase = Depends(get_price_history_use_case),
) -> PriceHistoryResponse:
    """Return the price history of one asset, oldest sample first."""
    result = use_case.execute(GetPriceHistoryQuery(symbol=symbol, days=days))
    return PriceHistoryResponse(
        symbol=result.symbol,
        days=result.days,
        prices=[PricePointItem(timestamp=p.timestamp, price=p.price) for p in result.prices],
    )

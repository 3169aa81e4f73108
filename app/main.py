"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (portfolio, market, health)
- Error handlers (centralized domain-to-HTTP mapping)
- Security middleware (headers, rate limiting)
- Logging configuration
- Process-wide collaborators (ledger store, price oracle, user locks)

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded
from sqlalchemy import create_engine

from app.application.portfolio.locks import UserLockRegistry
from app.core.config import settings
from app.infrastructure.portfolio.coingecko_oracle import CoinGeckoPriceOracle
from app.infrastructure.portfolio.ledger_store import SqlLedgerStore
from app.interfaces.health import router as health_router
from app.interfaces.portfolio.router import market_router
from app.interfaces.portfolio.router import router as portfolio_router
from app.shared.errors.handlers import register_error_handlers
from app.shared.logging import configure_logging
from app.shared.security.headers import SecurityHeadersMiddleware
from app.shared.security.rate_limiting import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: open and close the process-wide collaborators.

    The ledger store and price oracle are opened once per process and
    passed by reference into every use case. The user lock registry
    must also be unique per process for per-user serialization to hold.
    """
    engine = create_engine(settings.get_database_url(), pool_pre_ping=True)
    store = SqlLedgerStore(engine)
    store.create_tables()
    oracle = CoinGeckoPriceOracle(
        base_url=settings.price_oracle_base_url,
        timeout=settings.price_oracle_timeout_seconds,
        max_requests_per_minute=settings.price_oracle_max_requests_per_minute,
        cache_ttl=settings.price_oracle_cache_ttl_seconds,
        api_key=settings.price_oracle_api_key,
    )

    app.state.ledger_store = store
    app.state.price_oracle = oracle
    app.state.user_locks = UserLockRegistry()
    logger.info("Ledger store ready at %s", engine.url.render_as_string(hide_password=True))

    yield

    # Shutdown
    oracle.close()
    engine.dispose()


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and security middleware.
    This is the composition root of the application.

    Args:
        use_lifespan: Open the real store and oracle on startup. Tests
            pass False and put their own collaborators on ``app.state``.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan if use_lifespan else None,
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # --- Security Middleware ---
    app.add_middleware(SecurityHeadersMiddleware)

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(portfolio_router, prefix="/api/v1")
    app.include_router(market_router, prefix="/api/v1")

    return app


app = create_app()

"""
Centralized error handlers for FastAPI.

Maps domain-specific errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses share one shape: {"error", "kind", "detail"}.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.domain.portfolio.errors import (
    AccountAlreadyExistsError,
    InsufficientFundsError,
    InsufficientQuantityError,
    InvalidOrderError,
    InvalidQueryError,
    NoPositionError,
    PersistenceError,
    PortfolioDomainError,
    PriceUnavailableError,
    SymbolNotFoundError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_401 = 401
HTTP_404 = 404
HTTP_409 = 409
HTTP_422 = 422
HTTP_500 = 500
HTTP_503 = 503

PRICE_RETRY_AFTER_SECONDS = "30"

# Request-shape failures on this route are order errors.
TRADES_PATH_SUFFIX = "/portfolio/trades"

# Domain error -> (status code, short title).
ERROR_STATUS: dict[type[PortfolioDomainError], tuple[int, str]] = {
    InvalidOrderError: (HTTP_422, "Invalid order"),
    InvalidQueryError: (HTTP_400, "Invalid query"),
    SymbolNotFoundError: (HTTP_404, "Cryptocurrency not found"),
    PriceUnavailableError: (HTTP_503, "Price unavailable"),
    InsufficientFundsError: (HTTP_400, "Insufficient balance"),
    InsufficientQuantityError: (HTTP_400, "Insufficient holdings"),
    NoPositionError: (HTTP_400, "No position"),
    UserNotFoundError: (HTTP_404, "User not found"),
    AccountAlreadyExistsError: (HTTP_409, "Account already exists"),
}


def _error_response(
    status_code: int,
    error: str,
    kind: str,
    detail: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error, "kind": kind}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body, headers=headers)


class AuthenticationError(Exception):
    """Raised at the boundary when the caller's identity is missing."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def _validation_summary(exc: RequestValidationError) -> str:
    """Render pydantic errors as "field: message; ..." without echoing input."""
    parts = []
    for error in exc.errors():
        loc = [str(p) for p in error.get("loc", ()) if p not in ("body", "query")]
        field = ".".join(loc) or "request"
        parts.append(f"{field}: {error.get('msg', 'invalid')}")
    return "; ".join(parts)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(AuthenticationError)
    async def handle_authentication(
        _request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """Handle missing or malformed caller identity."""
        logger.warning("Unauthenticated request: %s", exc.reason)
        return _error_response(HTTP_401, "Unauthorized", "Unauthorized", exc.reason)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Map request-shape violations to the shared error body."""
        detail = _validation_summary(exc)
        if request.method == "POST" and request.url.path.rstrip("/").endswith(
            TRADES_PATH_SUFFIX
        ):
            logger.warning("InvalidOrder: %s", detail)
            return _error_response(
                HTTP_422, "Invalid order", InvalidOrderError.kind, detail
            )
        logger.warning("InvalidRequest: %s", detail)
        return _error_response(HTTP_422, "Invalid request", "InvalidRequest", detail)

    @app.exception_handler(PersistenceError)
    async def handle_persistence(
        _request: Request, exc: PersistenceError
    ) -> JSONResponse:
        """Handle ledger store failures without exposing internals."""
        if exc.trade_id is not None:
            logger.error(
                "Persistence failure after trade %s was recorded (%s)",
                exc.trade_id,
                exc.operation,
            )
            detail = (
                f"Trade {exc.trade_id} was recorded but the account update "
                "did not complete"
            )
        else:
            logger.error("Persistence failure during %s", exc.operation)
            detail = "The operation could not be stored"
        return _error_response(HTTP_500, "Failed to execute trade", exc.kind, detail)

    @app.exception_handler(PortfolioDomainError)
    async def handle_portfolio_domain(
        _request: Request, exc: PortfolioDomainError
    ) -> JSONResponse:
        """Map business-rule and lookup failures to their status codes."""
        status_code, title = ERROR_STATUS.get(
            type(exc), (HTTP_500, "Internal server error")
        )
        headers = None
        if isinstance(exc, PriceUnavailableError):
            headers = {"Retry-After": PRICE_RETRY_AFTER_SECONDS}
        if status_code == HTTP_500:
            logger.error("Unhandled portfolio domain error: %s", exc.message)
            return _error_response(status_code, title, exc.kind)
        logger.warning("%s: %s", exc.kind, exc.message)
        return _error_response(status_code, title, exc.kind, exc.message, headers)

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error", "InternalError")

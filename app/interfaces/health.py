"""
Health check router.

Liveness and readiness check. Reports "ok" once the ledger store and
price oracle are attached to the application, "starting" before that.
"""

from fastapi import APIRouter, Request

from app.core.config import settings
from app.interfaces.portfolio.schemas import HealthResponse

router = APIRouter(tags=["health"])

REQUIRED_STATE = ("ledger_store", "price_oracle", "user_locks")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns readiness of the trade engine and the API version.",
)
def health_check(request: Request) -> HealthResponse:
    """Return current application health status."""
    ready = all(hasattr(request.app.state, name) for name in REQUIRED_STATE)
    return HealthResponse(status="ok" if ready else "starting", version=settings.version)

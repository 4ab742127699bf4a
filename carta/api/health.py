"""
Health check endpoints.

Provides liveness and readiness checks with deck store connectivity checks.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from carta.api.deps import get_store
from carta.db.store import DeckStore

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness check.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    store: Annotated[DeckStore, Depends(get_store)],
) -> HealthResponse:
    """
    Readiness check.

    Returns ready if the service can handle requests.
    Checks the deck store (re-opening it if needed). Returns 503 if it is unavailable.
    """
    if await store.ping():
        return HealthResponse(status="ready", database="connected")

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(status="not ready", database="disconnected")

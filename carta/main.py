import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carta.api import decks_router, health_router, sessions_router
from carta.config import settings
from carta.db.store import DeckStore, StorageError
from carta.models.registry import SessionRegistry
from carta.services.sample_decks import seed_sample_decks

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    store = DeckStore(settings.database_url, echo=settings.debug)
    await store.initialize()
    if settings.seed_sample_decks:
        await seed_sample_decks(store)

    app.state.store = store
    app.state.registry = SessionRegistry()
    yield
    app.state.registry.clear()
    await store.close()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("carta"),
    lifespan=lifespan,
)

app.include_router(decks_router)
app.include_router(health_router)
app.include_router(sessions_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorageError)
async def storage_error_handler(_request: Request, exc: StorageError) -> JSONResponse:
    """Report storage failures as 503 with the failed operation."""
    logger.error("Storage failure during %s: %s", exc.operation, exc.cause)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": f"Deck storage unavailable ({exc.operation} failed)"},
    )

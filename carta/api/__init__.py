from carta.api.decks import router as decks_router
from carta.api.health import router as health_router
from carta.api.sessions import router as sessions_router

__all__ = [
    "decks_router",
    "health_router",
    "sessions_router",
]

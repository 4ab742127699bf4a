"""
Dependency providers for API routes.

The store and registry are created by the application lifespan and held
on app.state. Tests replace these providers via app.dependency_overrides.
"""

from fastapi import Request

from carta.db.store import DeckStore
from carta.models.registry import SessionRegistry


def get_store(request: Request) -> DeckStore:
    """Dependency that provides the deck store."""
    store: DeckStore = request.app.state.store
    return store


def get_registry(request: Request) -> SessionRegistry:
    """Dependency that provides the session registry."""
    registry: SessionRegistry = request.app.state.registry
    return registry

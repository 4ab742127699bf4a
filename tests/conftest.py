import random
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from carta.api.deps import get_registry, get_store
from carta.db.store import DeckStore
from carta.main import app
from carta.models.deck import Deck, deck_from_config
from carta.models.registry import SessionRegistry


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    """A complete raw deck payload, as a user would import it."""
    return {
        "id": "deck-npcs",
        "name": "Tavern Regulars",
        "coverImage": "https://example.com/tavern.png",
        "options": [
            {"title": "Innkeeper", "description": "Knows everyone's tab.", "pose": "Wiping a mug"},
            {"title": "Bard", "image": "https://example.com/bard.png"},
            {"title": "Off-duty Guard", "mood": "tired", "rank": 3},
        ],
    }


@pytest.fixture
def three_card_deck(sample_payload: dict[str, Any]) -> Deck:
    return deck_from_config(sample_payload)


@pytest.fixture
async def store(tmp_path: Path) -> AsyncGenerator[DeckStore, None]:
    """A deck store backed by a SQLite file in a temporary directory."""
    deck_store = DeckStore(f"sqlite+aiosqlite:///{tmp_path / 'decks.db'}")
    yield deck_store
    await deck_store.close()


@pytest.fixture
def registry() -> SessionRegistry:
    """A registry whose sessions draw reproducibly."""
    return SessionRegistry(rng_factory=lambda: random.Random(1234))


@pytest.fixture
async def client(
    store: DeckStore, registry: SessionRegistry
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async test client wired to the test store and registry."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_registry] = lambda: registry

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

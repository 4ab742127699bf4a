"""Tests for the persistent deck store."""

import asyncio
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from carta.db.store import DeckStore, StorageError
from carta.models.db import Base
from carta.models.deck import Deck, DeckValidationError, deck_from_config


def payload(name: str, *titles: str) -> dict[str, Any]:
    return {"name": name, "options": [{"title": t} for t in titles or ("A",)]}


async def has_decks_table(database_url: str) -> bool:
    engine = create_async_engine(database_url)
    try:
        async with engine.connect() as conn:
            return await conn.run_sync(lambda c: inspect(c).has_table("decks"))
    finally:
        await engine.dispose()


class TestInitialize:
    async def test_creates_schema_on_first_use(self, store: DeckStore) -> None:
        """First initialization creates the decks table."""
        await store.initialize()

        assert await has_decks_table(store.database_url)

    async def test_idempotent(self, store: DeckStore) -> None:
        """A healthy engine is reused."""
        first = await store.initialize()
        second = await store.initialize()

        assert first is second

    async def test_concurrent_initializers_share_one_open(
        self, store: DeckStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Concurrent first-time callers open the store exactly once."""
        opened = 0
        original_open = store._open

        async def counting_open() -> AsyncEngine:
            nonlocal opened
            opened += 1
            await asyncio.sleep(0)
            return await original_open()

        monkeypatch.setattr(store, "_open", counting_open)

        engines = await asyncio.gather(*(store.initialize() for _ in range(5)))

        assert opened == 1
        assert all(engine is engines[0] for engine in engines)

    async def test_reopens_stale_connection_without_data_loss(
        self, store: DeckStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A stale handle is replaced transparently and stored decks survive."""
        saved = await store.import_deck(payload("Test", "A", "B"))
        stale = await store.initialize()

        original_check = store._is_healthy
        checks: list[AsyncEngine] = []

        async def fail_once(engine: AsyncEngine) -> bool:
            if not checks:
                checks.append(engine)
                return False
            return await original_check(engine)

        monkeypatch.setattr(store, "_is_healthy", fail_once)

        assert await store.initialize() is not stale
        decks = await store.get_all()

        assert [d.id for d in decks] == [saved.id]

    async def test_operations_skip_health_check_on_live_engine(
        self, store: DeckStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Successful operations on an open store never run the schema check."""
        await store.initialize()
        checks = 0

        async def counting_check(engine: AsyncEngine) -> bool:
            nonlocal checks
            checks += 1
            return True

        monkeypatch.setattr(store, "_is_healthy", counting_check)

        deck = await store.import_deck(payload("Test"))
        await store.get(deck.id)
        await store.get_all()
        await store.has_any()
        await store.delete(deck.id)

        assert checks == 0

    async def test_retries_once_after_stale_failure(
        self, store: DeckStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An error on a stale engine re-opens the store and retries the operation."""
        saved = await store.import_deck(payload("Test"))
        stale = await store.initialize()
        original_execute = AsyncSession.execute
        failures = 0

        async def execute_failing_once(self: AsyncSession, *args: Any, **kwargs: Any) -> Any:
            nonlocal failures
            if failures == 0:
                failures += 1
                raise OperationalError("SELECT", {}, Exception("database is locked"))
            return await original_execute(self, *args, **kwargs)

        async def stale_check(engine: AsyncEngine) -> bool:
            return engine is not stale

        monkeypatch.setattr(AsyncSession, "execute", execute_failing_once)
        monkeypatch.setattr(store, "_is_healthy", stale_check)

        decks = await store.get_all()

        assert [d.id for d in decks] == [saved.id]
        assert failures == 1
        assert store._engine is not stale

    async def test_reopens_after_close(self, store: DeckStore) -> None:
        """Operations after close() re-open the store with data intact."""
        saved = await store.import_deck(payload("Test", "A", "B"))

        await store.close()
        decks = await store.get_all()

        assert [d.to_config() for d in decks] == [saved.to_config()]

    async def test_recreates_missing_schema(self, store: DeckStore) -> None:
        """A dropped table is recreated on the next operation."""
        engine = await store.initialize()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

        assert await store.get_all() == []
        assert await store.initialize() is not engine

    async def test_open_failure_is_storage_error(self, tmp_path: Path) -> None:
        """An unopenable database surfaces as a StorageError naming the operation."""
        broken = DeckStore(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'decks.db'}")

        with pytest.raises(StorageError) as exc_info:
            await broken.get_all()

        assert exc_info.value.operation == "open"
        assert await broken.ping() is False

    async def test_ping(self, store: DeckStore) -> None:
        assert await store.ping() is True


class TestCrud:
    async def test_import_scenario(self, store: DeckStore) -> None:
        """Importing a valid payload assigns an id and stores every card."""
        deck = await store.import_deck(
            {"name": "Test", "options": [{"title": "A"}, {"title": "B"}]}
        )

        decks = await store.get_all()

        assert deck.id
        assert len(decks) == 1
        assert decks[0].id == deck.id
        assert decks[0].total_cards == 2

    async def test_import_keeps_given_id(self, store: DeckStore) -> None:
        deck = await store.import_deck({"id": "fixed", **payload("Test")})

        assert deck.id == "fixed"
        assert await store.get("fixed") is not None

    async def test_import_rejects_invalid_payload(self, store: DeckStore) -> None:
        """Invalid payloads raise before anything is written."""
        with pytest.raises(DeckValidationError):
            await store.import_deck({"name": "Broken", "options": []})

        assert await store.has_any() is False

    async def test_get_missing_returns_none(self, store: DeckStore) -> None:
        assert await store.get("nope") is None

    async def test_round_trip(self, store: DeckStore, sample_payload: dict[str, Any]) -> None:
        """A stored deck reads back with identical fields and card order."""
        await store.import_deck(sample_payload)

        loaded = await store.get(sample_payload["id"])

        assert loaded is not None
        assert loaded.to_config() == sample_payload

    async def test_get_all_preserves_storage_order(self, store: DeckStore) -> None:
        """Decks list in the order they were stored, not by name."""
        for name in ["Zebra", "Apple", "Mango"]:
            await store.import_deck(payload(name))

        names = [d.name for d in await store.get_all()]

        assert names == ["Zebra", "Apple", "Mango"]

    async def test_save_overwrites(self, store: DeckStore) -> None:
        """Saving an existing id replaces it without moving it."""
        first = await store.import_deck({"id": "a", **payload("First", "A")})
        await store.import_deck(payload("Second"))

        await store.save(Deck(id=first.id, name="Renamed", cards=first.cards[:1]))

        decks = await store.get_all()
        assert [d.name for d in decks] == ["Renamed", "Second"]
        assert len(decks) == 2

    async def test_delete(self, store: DeckStore) -> None:
        deck = await store.import_deck(payload("Test"))

        assert await store.delete(deck.id) is True
        assert await store.get(deck.id) is None

    async def test_delete_missing_is_noop(self, store: DeckStore) -> None:
        """Deleting an unknown id succeeds and changes nothing."""
        await store.import_deck(payload("Keep"))
        before = await store.get_all()

        assert await store.delete("not-there") is False
        assert [d.id for d in await store.get_all()] == [d.id for d in before]

    async def test_has_any(self, store: DeckStore) -> None:
        assert await store.has_any() is False

        await store.import_deck(payload("Test"))

        assert await store.has_any() is True

    async def test_clear_all_keeps_schema(self, store: DeckStore) -> None:
        await store.import_deck(payload("One"))
        await store.import_deck(payload("Two"))

        await store.clear_all()

        assert await store.get_all() == []
        assert await has_decks_table(store.database_url)

    async def test_reset_store_drops_schema(self, store: DeckStore) -> None:
        """reset_store destroys the schema; the next operation recreates it empty."""
        await store.import_deck(payload("Test"))

        await store.reset_store()

        assert await has_decks_table(store.database_url) is False
        assert await store.get_all() == []
        assert await has_decks_table(store.database_url) is True

    async def test_failed_write_is_not_success(
        self, store: DeckStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A failing commit raises StorageError and stores nothing."""
        await store.initialize()

        async def failing_commit(self: AsyncSession) -> None:
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(AsyncSession, "commit", failing_commit)

        with pytest.raises(StorageError) as exc_info:
            await store.save(deck_from_config(payload("Lost")))

        assert exc_info.value.operation == "save"
        monkeypatch.undo()
        assert await store.get_all() == []

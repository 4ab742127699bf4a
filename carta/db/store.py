"""
Persistent deck store.

Durable CRUD over deck definitions keyed by deck id, backed by an async
SQLAlchemy engine.

The store owns its engine. Operations run on the live engine directly;
pool_pre_ping replaces dropped connections. When an operation still hits
a database error, the store checks whether the engine has gone stale or
the schema is missing, re-opens it through initialize() and retries the
operation once. Re-opening is guarded by a lock so concurrent callers
share a single engine and schema creation runs once.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from sqlalchemy import delete, func, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from carta.models.db import Base, DeckRecordDB
from carta.models.deck import Card, Deck, deck_from_config

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageError(Exception):
    """
    Raised when the backing store fails to open, read or write.

    Attributes:
        operation: Name of the store operation that failed
    """

    def __init__(self, operation: str, cause: BaseException | None = None):
        self.operation = operation
        self.cause = cause
        message = f"Deck storage failed during {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


def record_to_deck(record: DeckRecordDB) -> Deck:
    """Convert a database record to a domain deck."""
    return Deck(
        id=record.id,
        name=record.name,
        cards=tuple(Card.from_dict(card) for card in record.cards),
        cover_image=record.cover_image,
    )


class DeckStore:
    """
    Durable mapping from deck id to deck definition.

    Args:
        database_url: SQLAlchemy async database URL
        echo: Log emitted SQL
    """

    def __init__(self, database_url: str, *, echo: bool = False):
        self.database_url = database_url
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._lock = asyncio.Lock()

    # --- Connection lifecycle ---

    async def initialize(self) -> AsyncEngine:
        """
        Get a healthy engine, opening or re-opening it as needed.

        Idempotent. Always checks the engine and schema, so a stale engine
        or a missing schema is repaired here and never reported to the
        caller. Deck operations skip this check on the happy path.

        Raises:
            StorageError: If the database cannot be opened
        """
        engine = self._engine
        if engine is not None and await self._is_healthy(engine):
            return engine

        async with self._lock:
            if self._engine is not None and self._engine is not engine:
                # Another caller re-opened while we waited
                return self._engine

            if self._engine is not None:
                logger.warning("Deck store connection is stale or schema is missing, reopening")
                await self._engine.dispose()
                self._engine = None

            self._engine = await self._open()
            return self._engine

    async def _open(self) -> AsyncEngine:
        engine = create_async_engine(self.database_url, echo=self._echo, pool_pre_ping=True)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            await engine.dispose()
            raise StorageError("open", e) from e

        logger.info("Opened deck store at %s", engine.url.render_as_string(hide_password=True))
        return engine

    async def _is_healthy(self, engine: AsyncEngine) -> bool:
        try:
            async with engine.connect() as conn:
                return await conn.run_sync(
                    lambda sync_conn: inspect(sync_conn).has_table(DeckRecordDB.__tablename__)
                )
        except SQLAlchemyError as e:
            logger.warning("Deck store health check failed: %s", e)
            return False

    async def ping(self) -> bool:
        """True if the store can be opened and its schema is present."""
        try:
            await self.initialize()
        except StorageError:
            return False
        return True

    async def close(self) -> None:
        """
        Release the engine.

        The next operation re-opens the store, so this is safe to call
        at any time.
        """
        async with self._lock:
            if self._engine is not None:
                await self._engine.dispose()
                self._engine = None

    async def reset_store(self) -> None:
        """
        Close the connection and destroy the schema with all its data.

        Unlike clear_all(), the schema itself is dropped. It is recreated
        on the next operation.
        """
        async with self._lock:
            engine = self._engine
            self._engine = None
            if engine is None:
                engine = create_async_engine(self.database_url, echo=self._echo)

            try:
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.drop_all)
            except SQLAlchemyError as e:
                raise StorageError("reset_store", e) from e
            finally:
                await engine.dispose()

        logger.info("Deck store reset")

    async def _run(self, operation: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """
        Run one unit of work in a fresh session.

        The live engine is used as-is. The health check only runs after a
        database error: if the engine turns out to be stale or the schema
        is gone, the store is re-opened and the work is retried once.
        Errors on a healthy store are reported without a retry.
        """
        engine = self._engine
        if engine is None:
            engine = await self.initialize()

        try:
            return await self._run_on(engine, work)
        except SQLAlchemyError as e:
            if await self._is_healthy(engine):
                raise StorageError(operation, e) from e
            logger.warning(
                "Deck store %s failed on a stale connection, retrying: %s", operation, e
            )

        engine = await self.initialize()
        try:
            return await self._run_on(engine, work)
        except SQLAlchemyError as e:
            raise StorageError(operation, e) from e

    @staticmethod
    async def _run_on(engine: AsyncEngine, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with factory() as session:
            return await work(session)

    # --- Deck operations ---

    async def get_all(self) -> list[Deck]:
        """All stored decks, in the order they were first stored."""

        async def work(session: AsyncSession) -> list[Deck]:
            result = await session.execute(select(DeckRecordDB).order_by(DeckRecordDB.position))
            return [record_to_deck(record) for record in result.scalars().all()]

        return await self._run("get_all", work)

    async def get(self, deck_id: str) -> Deck | None:
        """
        Get a deck by id.

        Returns None if no deck is stored under this id.
        """

        async def work(session: AsyncSession) -> Deck | None:
            record = await session.get(DeckRecordDB, deck_id)
            return record_to_deck(record) if record is not None else None

        return await self._run("get", work)

    async def save(self, deck: Deck) -> None:
        """
        Insert or overwrite a deck.

        Last writer wins; there is no version check. An overwritten deck
        keeps its original storage position.
        """

        async def work(session: AsyncSession) -> None:
            record = await session.get(DeckRecordDB, deck.id)
            if record is None:
                last = await session.scalar(select(func.max(DeckRecordDB.position)))
                record = DeckRecordDB(id=deck.id, position=0 if last is None else last + 1)
                session.add(record)

            record.name = deck.name
            record.cover_image = deck.cover_image
            record.cards = [card.to_dict() for card in deck.cards]
            await session.commit()

        await self._run("save", work)

    async def delete(self, deck_id: str) -> bool:
        """
        Delete a deck.

        Deleting an id that is not stored is a successful no-op.

        Returns:
            True if a deck was removed, False if none was stored
        """

        async def work(session: AsyncSession) -> bool:
            result = await session.execute(delete(DeckRecordDB).where(DeckRecordDB.id == deck_id))
            await session.commit()
            # rowcount is available on DELETE results; type stubs incomplete for async
            return bool(result.rowcount)  # type: ignore[attr-defined]

        return await self._run("delete", work)

    async def import_deck(self, config: Any) -> Deck:
        """
        Validate a raw payload and store it.

        Assigns an id when the payload has none.

        Raises:
            DeckValidationError: If the payload is invalid. Nothing is written.
            StorageError: If the write fails
        """
        deck = deck_from_config(config)
        await self.save(deck)
        logger.info("Imported deck %r (%d cards) as %s", deck.name, deck.total_cards, deck.id)
        return deck

    async def has_any(self) -> bool:
        """True if at least one deck is stored."""

        async def work(session: AsyncSession) -> bool:
            first = await session.scalar(select(DeckRecordDB.id).limit(1))
            return first is not None

        return await self._run("has_any", work)

    async def clear_all(self) -> None:
        """Delete every stored deck, keeping the schema."""

        async def work(session: AsyncSession) -> None:
            await session.execute(delete(DeckRecordDB))
            await session.commit()

        await self._run("clear_all", work)

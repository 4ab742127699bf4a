"""
Import deck payloads into the store from the command line.

Each source is a JSON file path or an http(s) URL. Every payload is
validated before it is stored; a bad source is logged and counted but
does not stop the others.

Usage:
    python -m carta.jobs.import_decks decks/npcs.json https://example.com/beasts.json
    python -m carta.jobs.import_decks --reset --seed
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

import httpx

from carta.config import settings
from carta.db.store import DeckStore
from carta.models.deck import DeckValidationError
from carta.services.importers import (
    USER_AGENT,
    DeckImportError,
    fetch_deck_url,
    load_deck_file,
)
from carta.services.sample_decks import seed_sample_decks

logger = logging.getLogger(__name__)


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


async def import_source(store: DeckStore, source: str, client: httpx.AsyncClient) -> bool:
    """
    Import one deck source.

    Returns:
        True if the deck was stored, False if the source was rejected
    """
    try:
        payload: dict[str, Any]
        if _is_url(source):
            payload = await fetch_deck_url(source, client=client)
        else:
            payload = load_deck_file(Path(source))
        deck = await store.import_deck(payload)
    except (DeckImportError, DeckValidationError) as e:
        logger.error("Skipping %s: %s", source, e)
        return False

    logger.info("Imported %r (%d cards) from %s", deck.name, deck.total_cards, source)
    return True


async def run_import(
    sources: list[str],
    database_url: str | None = None,
    reset: bool = False,
    seed: bool = False,
) -> dict[str, int]:
    """
    Import decks from files and URLs.

    Args:
        sources: File paths and URLs to import
        database_url: Store to import into (defaults to settings.database_url)
        reset: Drop the whole store before importing
        seed: Load the bundled sample decks if the store is empty

    Returns:
        Counts of "imported", "failed" and "seeded" decks
    """
    store = DeckStore(database_url or settings.database_url, echo=settings.debug)
    results = {"imported": 0, "failed": 0, "seeded": 0}

    try:
        if reset:
            logger.warning("Resetting deck store at %s", store.database_url)
            await store.reset_store()

        async with httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            timeout=settings.import_timeout,
        ) as client:
            for source in sources:
                if await import_source(store, source, client):
                    results["imported"] += 1
                else:
                    results["failed"] += 1

        if seed:
            results["seeded"] = await seed_sample_decks(store)
    finally:
        await store.close()

    logger.info(
        "Import complete: %d imported, %d failed, %d seeded",
        results["imported"],
        results["failed"],
        results["seeded"],
    )
    return results


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for importing decks."""
    parser = argparse.ArgumentParser(description="Import decks into the Carta store")
    parser.add_argument(
        "sources",
        nargs="*",
        help="Deck JSON files or http(s) URLs",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy async URL (default: CARTA_DATABASE_URL or settings)",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Destroy the store (schema and all decks) before importing",
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Load the bundled sample decks if the store is empty",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    results = asyncio.run(
        run_import(args.sources, database_url=args.database_url, reset=args.reset, seed=args.seed)
    )
    return 1 if results["failed"] else 0


if __name__ == "__main__":
    sys.exit(main())

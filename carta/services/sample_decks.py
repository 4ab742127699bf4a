"""
Bundled sample decks.

Seeded into an empty store on first run so a new install has something
to play with. Seeding never touches a store that already holds decks,
so user deletions of sample decks stick.
"""

import copy
import logging
from typing import Any

from carta.db.store import DeckStore

logger = logging.getLogger(__name__)

SAMPLE_DECKS: list[dict[str, Any]] = [
    {
        "name": "Caravan NPCs",
        "options": [
            {
                "title": "The Cartographer",
                "description": "Sells maps that are mostly correct.",
                "pose": "Leaning over a folding table",
            },
            {
                "title": "Twin Muleteers",
                "description": "Argue about everything except the mules.",
            },
            {
                "title": "Salt Merchant",
                "description": "Pays in salt, expects to be paid in salt.",
            },
            {
                "title": "Retired Guard",
                "description": "Still carries the spear. Still polishes it nightly.",
                "pose": "Seated, spear across knees",
            },
            {
                "title": "Runaway Acolyte",
                "description": "Knows three prayers and one very loud curse.",
            },
        ],
    },
    {
        "name": "Road Destinations",
        "options": [
            {"title": "Glass Ferry", "description": "Crosses a lake that is not always there."},
            {"title": "The Bone Orchard", "description": "Fruit trees grown over a battlefield."},
            {"title": "Lantern Market", "description": "Open only after dusk."},
            {"title": "Sunken Toll Road", "description": "The toll keeper is still collecting."},
        ],
    },
    {
        "name": "Cave Bestiary",
        "options": [
            {"title": "Blind Ant Swarm", "threat": "low"},
            {"title": "Chalk Crawler", "threat": "medium"},
            {"title": "Echo Mother", "threat": "high", "notes": "Repeats the last thing said."},
        ],
    },
]


def get_sample_decks() -> list[dict[str, Any]]:
    """
    Get the sample deck payloads.

    Returns copies to prevent modification of the templates.
    """
    return copy.deepcopy(SAMPLE_DECKS)


async def seed_sample_decks(store: DeckStore) -> int:
    """
    Import the sample decks into an empty store.

    Returns:
        Number of decks imported (0 if the store already had decks)
    """
    if await store.has_any():
        return 0

    logger.info("First run: loading sample decks")
    count = 0
    for payload in get_sample_decks():
        deck = await store.import_deck(payload)
        logger.info("Loaded sample deck %r", deck.name)
        count += 1
    return count

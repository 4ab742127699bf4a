"""
Carta services.

Deck payload acquisition and first-run seeding.
"""

from carta.services.importers import (
    DeckImportError,
    fetch_deck_url,
    load_deck_file,
    parse_deck_json,
)
from carta.services.sample_decks import SAMPLE_DECKS, get_sample_decks, seed_sample_decks

__all__ = [
    "DeckImportError",
    "SAMPLE_DECKS",
    "fetch_deck_url",
    "get_sample_decks",
    "load_deck_file",
    "parse_deck_json",
    "seed_sample_decks",
]

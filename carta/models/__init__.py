from carta.models.deck import (
    Card,
    Deck,
    DeckValidationError,
    ValidationResult,
    deck_from_config,
    new_deck_id,
    validate_deck_config,
)
from carta.models.registry import DuplicateSessionError, SessionIndexError, SessionRegistry
from carta.models.session import DeckSession

__all__ = [
    "Card",
    "Deck",
    "DeckSession",
    "DeckValidationError",
    "DuplicateSessionError",
    "SessionIndexError",
    "SessionRegistry",
    "ValidationResult",
    "deck_from_config",
    "new_deck_id",
    "validate_deck_config",
]

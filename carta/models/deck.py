"""
Deck definitions and the import validation gate.

A Deck is immutable once built. The only way to build one from external
data is deck_from_config(), which runs validate_deck_config() first and
refuses to construct anything from a payload that fails it.

Card order is the deck's canonical ordering. A card's position in
Deck.cards is its identity for draw bookkeeping; nothing about that
position is stored inside the card itself.
"""

import uuid
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

# Raw payload keys
NAME_KEY = "name"
ID_KEY = "id"
COVER_IMAGE_KEY = "coverImage"
CARDS_KEY = "options"
CARDS_ALIAS_KEY = "cards"
TITLE_KEY = "title"


class DeckValidationError(Exception):
    """
    Raised when a raw deck payload fails structural validation.

    Carries every violated rule, in the order they were checked.
    Nothing is constructed or stored when this is raised.
    """

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid deck: {'; '.join(self.errors)}")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a raw deck payload."""

    errors: tuple[str, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class Card:
    """
    A single card: a required title plus opaque display fields.

    Attributes:
        title: Non-empty card title
        fields: Every other key from the source record, in original order.
            The engine never interprets these.
    """

    title: str
    fields: Mapping[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a field by name, including the title."""
        if key == TITLE_KEY:
            return self.title
        return self.fields.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """The card's original field set."""
        return {TITLE_KEY: self.title, **self.fields}

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "Card":
        extras = {key: value for key, value in record.items() if key != TITLE_KEY}
        return cls(title=record[TITLE_KEY], fields=extras)


@dataclass(frozen=True)
class Deck:
    """
    A named, ordered collection of cards.

    Attributes:
        id: Stable unique identifier, used as the storage key
        name: Non-empty display name
        cards: Cards in canonical order (at least one)
        cover_image: Optional URL-like reference to a display image
    """

    id: str
    name: str
    cards: tuple[Card, ...]
    cover_image: str | None = None

    @property
    def total_cards(self) -> int:
        return len(self.cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def to_config(self) -> dict[str, Any]:
        """Export back to the raw payload format."""
        return {
            ID_KEY: self.id,
            NAME_KEY: self.name,
            COVER_IMAGE_KEY: self.cover_image,
            CARDS_KEY: [card.to_dict() for card in self.cards],
        }


def new_deck_id() -> str:
    """Generate a universally unique deck identifier."""
    return str(uuid.uuid4())


def _card_list(config: Mapping[str, Any]) -> Any:
    if CARDS_KEY in config:
        return config[CARDS_KEY]
    return config.get(CARDS_ALIAS_KEY)


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def validate_deck_config(config: Any) -> ValidationResult:
    """
    Validate a raw deck payload.

    Rules are all checked, in order:
        1. "name" is present and a non-empty string
        2. "options" is present and a list
        3. "options" is not empty
        4. every card has a non-empty string "title"
        5. "id", when present, is a string
        6. "coverImage", when present and not null, is a string

    Card-level rules only run when rule 2 holds. The function is pure:
    the same payload always yields the same result.

    Returns:
        ValidationResult whose errors list every violated rule
    """
    if not isinstance(config, Mapping):
        return ValidationResult(errors=("Deck must be a JSON object",))

    errors: list[str] = []

    if not _is_non_empty_str(config.get(NAME_KEY)):
        errors.append('Deck must have a "name" field (string)')

    cards = _card_list(config)
    if not isinstance(cards, list | tuple):
        errors.append('Deck must have an "options" field (array)')
    elif len(cards) == 0:
        errors.append('Deck must have at least one card in "options"')
    else:
        for i, card in enumerate(cards):
            title = card.get(TITLE_KEY) if isinstance(card, Mapping) else None
            if not _is_non_empty_str(title):
                errors.append(f'Card at index {i} must have a "title" field (string)')

    if ID_KEY in config and not isinstance(config[ID_KEY], str):
        errors.append('Deck "id" must be a string')

    cover_image = config.get(COVER_IMAGE_KEY)
    if cover_image is not None and not isinstance(cover_image, str):
        errors.append('Deck "coverImage" must be a string (URL)')

    return ValidationResult(errors=tuple(errors))


def deck_from_config(config: Any) -> Deck:
    """
    Build a Deck from a raw payload.

    Assigns a fresh id when the payload has none.

    Raises:
        DeckValidationError: If the payload fails validation
    """
    result = validate_deck_config(config)
    if not result.valid:
        raise DeckValidationError(result.errors)

    return Deck(
        id=config.get(ID_KEY) or new_deck_id(),
        name=config[NAME_KEY],
        cards=tuple(Card.from_dict(card) for card in _card_list(config)),
        cover_image=config.get(COVER_IMAGE_KEY) or None,
    )

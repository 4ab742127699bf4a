"""
Draw session: ephemeral play state for one deck.

A session never mutates its deck. It tracks which card positions have
been drawn since the last shuffle and which card was drawn last.

Replacement mode:
    always_shuffle=False  drawn cards leave the pile until shuffle()
    always_shuffle=True   every draw samples the full deck

Toggling always_shuffle keeps the drawn history. Switching back to
without-replacement resumes with whatever was recorded.
"""

import logging
import random
import threading

from carta.models.deck import Card, Deck

logger = logging.getLogger(__name__)


class DeckSession:
    """
    Play state for a single deck.

    Args:
        deck: The deck to draw from (shared, never modified)
        rng: Random source. Pass a seeded random.Random for reproducible draws.
    """

    def __init__(self, deck: Deck, rng: random.Random | None = None):
        self.deck = deck
        self.always_shuffle = False
        self.current_card: Card | None = None
        self._drawn: set[int] = set()
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return (
            f"<DeckSession(deck={self.deck.name!r}, drawn={len(self._drawn)}/"
            f"{self.deck.total_cards}, always_shuffle={self.always_shuffle})>"
        )

    @property
    def drawn_indices(self) -> frozenset[int]:
        """Card positions drawn since the last shuffle."""
        return frozenset(self._drawn)

    @property
    def drawn_count(self) -> int:
        return len(self._drawn)

    @property
    def remaining_count(self) -> int:
        if self.always_shuffle:
            return self.deck.total_cards
        return self.deck.total_cards - len(self._drawn)

    @property
    def is_empty(self) -> bool:
        """True only when drawing without replacement and the pile is used up."""
        return not self.always_shuffle and self.remaining_count == 0

    def remaining_indices(self) -> list[int]:
        """Positions currently eligible for the next draw."""
        positions = range(self.deck.total_cards)
        if self.always_shuffle:
            return list(positions)
        return [i for i in positions if i not in self._drawn]

    def draw(self) -> Card | None:
        """
        Draw one card uniformly at random from the current pool.

        Returns:
            The drawn card, or None if the pile is exhausted. An exhausted
            pile leaves the session unchanged.
        """
        with self._lock:
            pool = self.remaining_indices()
            if not pool:
                return None

            index = self._rng.choice(pool)
            if not self.always_shuffle:
                self._drawn.add(index)

            self.current_card = self.deck.cards[index]
            logger.debug("Drew card %d from %r (%d left)", index, self.deck.name, len(pool) - 1)
            return self.current_card

    def shuffle(self) -> None:
        """Return every drawn card to the pile and clear the current card."""
        with self._lock:
            self._drawn.clear()
            self.current_card = None

    def set_always_shuffle(self, value: bool) -> None:
        """Switch replacement mode. Drawn history and current card are kept."""
        with self._lock:
            self.always_shuffle = value

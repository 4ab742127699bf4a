"""
Session registry for the decks currently in play.

Holds at most one DeckSession per deck id, in the order they were added.
Positions shift down after a removal, so callers must not hold on to an
index across calls that remove sessions.
"""

import random
import threading
from collections.abc import Callable, Iterator

from carta.models.deck import Deck
from carta.models.session import DeckSession


class DuplicateSessionError(Exception):
    """Raised when a deck that is already in play is added again."""

    def __init__(self, deck_id: str, deck_name: str):
        self.deck_id = deck_id
        self.deck_name = deck_name
        super().__init__(f'"{deck_name}" is already in play')


class SessionIndexError(IndexError):
    """Raised when a registry position does not exist."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"No session at position {index} ({size} active)")


class SessionRegistry:
    """
    Ordered collection of active draw sessions.

    Args:
        rng_factory: Builds the random source for each new session.
            Defaults to an unseeded random.Random.
    """

    def __init__(self, rng_factory: Callable[[], random.Random] | None = None):
        self._sessions: list[DeckSession] = []
        self._rng_factory = rng_factory or random.Random
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[DeckSession]:
        return iter(list(self._sessions))

    def list(self) -> list[DeckSession]:
        """The live ordered sequence of active sessions."""
        return self._sessions

    def find(self, deck_id: str) -> DeckSession | None:
        """Get the session for a deck id, if that deck is in play."""
        return next((s for s in self._sessions if s.deck.id == deck_id), None)

    def get(self, index: int) -> DeckSession:
        """
        Get the session at a position.

        Raises:
            SessionIndexError: If no session exists at that position
        """
        if not 0 <= index < len(self._sessions):
            raise SessionIndexError(index, len(self._sessions))
        return self._sessions[index]

    def add(self, deck: Deck) -> DeckSession:
        """
        Put a deck into play.

        Raises:
            DuplicateSessionError: If the deck is already in play.
                The registry is left unchanged.
        """
        with self._lock:
            if self.find(deck.id) is not None:
                raise DuplicateSessionError(deck.id, deck.name)
            session = DeckSession(deck, rng=self._rng_factory())
            self._sessions.append(session)
            return session

    def remove(self, index: int) -> DeckSession:
        """
        Take the session at a position out of play.

        Later sessions move down one position.

        Raises:
            SessionIndexError: If no session exists at that position
        """
        with self._lock:
            session = self.get(index)
            del self._sessions[index]
            return session

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

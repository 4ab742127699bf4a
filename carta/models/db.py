"""
SQLAlchemy ORM models for persistent storage.

One row per deck, holding exactly the deck's serialized form. Draw
sessions are never persisted.
"""

from typing import Any

from sqlalchemy import JSON, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class DeckRecordDB(Base):
    """
    A stored deck definition.

    `position` records insertion order so listing returns decks in the
    order they were first stored. Overwriting a deck keeps its position.
    """

    __tablename__ = "decks"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    cover_image: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Each card's original field set, in deck order
    cards: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    position: Mapped[int] = mapped_column(Integer, index=True)

    def __repr__(self) -> str:
        return f"<DeckRecordDB(id={self.id}, name={self.name})>"

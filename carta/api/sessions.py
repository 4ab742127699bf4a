"""
Play session API endpoints.

Exposes the session registry: putting decks into play, drawing,
shuffling and switching replacement mode. Sessions live in memory only.

Sessions are addressed by position. Positions shift after a removal, so
clients should re-fetch the list after removing a session.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from carta.api.deps import get_registry, get_store
from carta.db.store import DeckStore
from carta.models.registry import DuplicateSessionError, SessionIndexError, SessionRegistry
from carta.models.session import DeckSession

router = APIRouter(prefix="/sessions", tags=["sessions"])


class SessionResponse(BaseModel):
    """Response model for one active session."""

    index: int
    deck_id: str
    deck_name: str
    always_shuffle: bool
    total_cards: int
    remaining_count: int
    drawn_count: int
    is_empty: bool
    current_card: dict[str, Any] | None = None

    @classmethod
    def from_session(cls, index: int, session: DeckSession) -> "SessionResponse":
        current = session.current_card
        return cls(
            index=index,
            deck_id=session.deck.id,
            deck_name=session.deck.name,
            always_shuffle=session.always_shuffle,
            total_cards=session.deck.total_cards,
            remaining_count=session.remaining_count,
            drawn_count=session.drawn_count,
            is_empty=session.is_empty,
            current_card=current.to_dict() if current is not None else None,
        )


class SessionListResponse(BaseModel):
    """Response model for all active sessions."""

    sessions: list[SessionResponse]
    count: int


class DrawResponse(BaseModel):
    """Response model for a draw. `card` is null when the pile is exhausted."""

    card: dict[str, Any] | None = None
    session: SessionResponse


class AddSessionRequest(BaseModel):
    """Request model for putting a deck into play."""

    deck_id: str = Field(..., description="Id of a stored deck")


class AlwaysShuffleRequest(BaseModel):
    """Request model for switching replacement mode."""

    value: bool = Field(..., description="True to draw from the full deck every time")


def _session_or_404(registry: SessionRegistry, index: int) -> DeckSession:
    try:
        return registry.get(index)
    except SessionIndexError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> SessionListResponse:
    """Get all active sessions in play order."""
    sessions = [SessionResponse.from_session(i, s) for i, s in enumerate(registry.list())]
    return SessionListResponse(sessions=sessions, count=len(sessions))


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def add_session(
    request: AddSessionRequest,
    store: Annotated[DeckStore, Depends(get_store)],
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> SessionResponse:
    """
    Put a stored deck into play.

    Returns 404 if the deck does not exist and 409 if it is already in play.
    """
    deck = await store.get(request.deck_id)
    if deck is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deck '{request.deck_id}' not found",
        )

    try:
        session = registry.add(deck)
    except DuplicateSessionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return SessionResponse.from_session(len(registry) - 1, session)


@router.delete("/{index}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_session(
    index: int,
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> Response:
    """Take the session at a position out of play."""
    try:
        registry.remove(index)
    except SessionIndexError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_sessions(
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> Response:
    """Take every deck out of play."""
    registry.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{index}/draw", response_model=DrawResponse)
async def draw_card(
    index: int,
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> DrawResponse:
    """Draw a card. An exhausted pile returns a null card, not an error."""
    session = _session_or_404(registry, index)
    card = session.draw()
    return DrawResponse(
        card=card.to_dict() if card is not None else None,
        session=SessionResponse.from_session(index, session),
    )


@router.post("/{index}/shuffle", response_model=SessionResponse)
async def shuffle_session(
    index: int,
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> SessionResponse:
    """Return all drawn cards to the pile."""
    session = _session_or_404(registry, index)
    session.shuffle()
    return SessionResponse.from_session(index, session)


@router.put("/{index}/always-shuffle", response_model=SessionResponse)
async def set_always_shuffle(
    index: int,
    request: AlwaysShuffleRequest,
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> SessionResponse:
    """Switch between drawing with and without replacement."""
    session = _session_or_404(registry, index)
    session.set_always_shuffle(request.value)
    return SessionResponse.from_session(index, session)

"""
Deck API endpoints.

Provides CRUD and import operations over stored decks.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from carta.api.deps import get_store
from carta.db.store import DeckStore
from carta.models.deck import Deck, DeckValidationError, validate_deck_config
from carta.services.importers import DeckImportError, fetch_deck_url

router = APIRouter(prefix="/decks", tags=["decks"])


class DeckResponse(BaseModel):
    """Response model for a single deck."""

    id: str
    name: str
    cover_image: str | None = None
    cards: list[dict[str, Any]] = Field(default_factory=list)
    total_cards: int = 0

    @classmethod
    def from_deck(cls, deck: Deck) -> "DeckResponse":
        return cls(
            id=deck.id,
            name=deck.name,
            cover_image=deck.cover_image,
            cards=[card.to_dict() for card in deck.cards],
            total_cards=deck.total_cards,
        )


class DeckListResponse(BaseModel):
    """Response model for a list of decks."""

    decks: list[DeckResponse]
    count: int


class ValidationResponse(BaseModel):
    """Response model for a validation check."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


class UrlImportRequest(BaseModel):
    """Request model for importing a deck from a URL."""

    url: str = Field(
        ...,
        description="http(s) URL serving deck JSON",
        examples=["https://example.com/decks/npcs.json"],
    )


def _invalid_deck(error: DeckValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"message": str(error), "errors": error.errors},
    )


async def _get_or_404(store: DeckStore, deck_id: str) -> Deck:
    deck = await store.get(deck_id)
    if deck is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deck '{deck_id}' not found",
        )
    return deck


@router.get("", response_model=DeckListResponse)
async def list_decks(store: Annotated[DeckStore, Depends(get_store)]) -> DeckListResponse:
    """Get all stored decks in storage order."""
    decks = [DeckResponse.from_deck(deck) for deck in await store.get_all()]
    return DeckListResponse(decks=decks, count=len(decks))


@router.post("", response_model=DeckResponse, status_code=status.HTTP_201_CREATED)
async def import_deck(
    payload: Annotated[Any, Body(examples=[{"name": "NPCs", "options": [{"title": "Guard"}]}])],
    store: Annotated[DeckStore, Depends(get_store)],
) -> DeckResponse:
    """
    Import a deck from a raw payload.

    The payload is validated before anything is stored. Returns 422 with
    the full list of problems if it is invalid.
    """
    try:
        deck = await store.import_deck(payload)
    except DeckValidationError as e:
        raise _invalid_deck(e) from e
    return DeckResponse.from_deck(deck)


@router.post("/validate", response_model=ValidationResponse)
async def validate_deck(payload: Annotated[Any, Body()]) -> ValidationResponse:
    """Check a raw payload without storing it."""
    result = validate_deck_config(payload)
    return ValidationResponse(valid=result.valid, errors=list(result.errors))


@router.post("/import-url", response_model=DeckResponse, status_code=status.HTTP_201_CREATED)
async def import_deck_from_url(
    request: UrlImportRequest,
    store: Annotated[DeckStore, Depends(get_store)],
) -> DeckResponse:
    """
    Fetch a deck payload from a URL, validate it and store it.

    Returns 400 if the URL cannot be fetched or does not serve a JSON object.
    """
    try:
        payload = await fetch_deck_url(request.url)
    except DeckImportError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    try:
        deck = await store.import_deck(payload)
    except DeckValidationError as e:
        raise _invalid_deck(e) from e
    return DeckResponse.from_deck(deck)


@router.get("/{deck_id}", response_model=DeckResponse)
async def get_deck(
    deck_id: str,
    store: Annotated[DeckStore, Depends(get_store)],
) -> DeckResponse:
    """
    Get a single deck.

    Returns 404 if deck not found.
    """
    return DeckResponse.from_deck(await _get_or_404(store, deck_id))


@router.get("/{deck_id}/export")
async def export_deck(
    deck_id: str,
    store: Annotated[DeckStore, Depends(get_store)],
) -> dict[str, Any]:
    """Get a deck in its raw import format."""
    deck = await _get_or_404(store, deck_id)
    return deck.to_config()


@router.delete("/{deck_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deck(
    deck_id: str,
    store: Annotated[DeckStore, Depends(get_store)],
) -> Response:
    """Delete a deck. Deleting an unknown id also succeeds."""
    await store.delete(deck_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_decks(store: Annotated[DeckStore, Depends(get_store)]) -> Response:
    """Delete every stored deck."""
    await store.clear_all()
    return Response(status_code=status.HTTP_204_NO_CONTENT)

"""
Raw deck payload acquisition.

Gets deck payloads from pasted text, local files and URLs. These helpers
only produce the raw payload; validation and storage happen in
DeckStore.import_deck().

Supports:
- Pasted JSON text (clipboard import)
- JSON files on disk
- JSON served over http(s)
"""

import json
import logging
from pathlib import Path
from typing import Any

import httpx

from carta.config import settings

logger = logging.getLogger(__name__)

USER_AGENT = "Carta/0.1"


class DeckImportError(Exception):
    """Raised when a deck payload cannot be read or parsed."""

    pass


def parse_deck_json(text: str) -> dict[str, Any]:
    """
    Parse a deck payload from JSON text.

    Raises:
        DeckImportError: If the text is not JSON or not a JSON object
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise DeckImportError(f"Not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise DeckImportError("Deck JSON must be an object")
    return payload


def load_deck_file(path: Path) -> dict[str, Any]:
    """
    Read a deck payload from a JSON file.

    Raises:
        DeckImportError: If the file cannot be read or parsed
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DeckImportError(f"Cannot read {path}: {e}") from e
    return parse_deck_json(text)


async def fetch_deck_url(
    url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
) -> dict[str, Any]:
    """
    Download a deck payload from a URL.

    Args:
        url: http(s) URL serving deck JSON
        client: Optional client for connection reuse
        timeout: Seconds before giving up (defaults to settings.import_timeout)

    Raises:
        DeckImportError: On HTTP errors, transport errors or invalid JSON
    """
    if not url.startswith(("http://", "https://")):
        raise DeckImportError(f"Unsupported URL: {url}")

    logger.info("Fetching deck from %s", url)
    try:
        if client is not None:
            response = await client.get(url)
        else:
            async with httpx.AsyncClient(
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
                timeout=timeout if timeout is not None else settings.import_timeout,
            ) as own_client:
                response = await own_client.get(url)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise DeckImportError(f"HTTP {e.response.status_code} fetching {url}") from e
    except httpx.HTTPError as e:
        raise DeckImportError(f"Failed to fetch {url}: {e}") from e

    return parse_deck_json(response.text)

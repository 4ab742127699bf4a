from carta.db.store import DeckStore, StorageError, record_to_deck

__all__ = [
    "DeckStore",
    "StorageError",
    "record_to_deck",
]

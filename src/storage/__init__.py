"""
Deck persistence.

- JsonItemStore: JSON deck file + JSONL session history
- InMemoryItemStore: dictionary-backed store for tests
"""

from .item_store import InMemoryItemStore, ItemRepository, JsonItemStore, StoreError

__all__ = [
    "ItemRepository",
    "JsonItemStore",
    "InMemoryItemStore",
    "StoreError",
]

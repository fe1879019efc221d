"""
Item persistence for WordPath decks.

Decks are stored as a single JSON document:

    {"version": 1, "items": {"<item_id>": {...item fields...}}}

A hand-written deck may instead be a plain JSON list of item objects;
only term and definition are required. Finished-session statistics are
appended to a sibling "<stem>.sessions.jsonl" file, one JSON object per
line.
"""

from __future__ import annotations

import json
import os
import tempfile
import uuid
from collections.abc import Iterable, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from loguru import logger

from src.engine.items import Item, validate_item_content

DECK_VERSION = 1


def stable_item_id(term: str) -> str:
    """Deterministic id for a hand-written entry, derived from its term."""
    return uuid.uuid5(uuid.NAMESPACE_URL, f"wordpath:{term.strip().lower()}").hex[:12]


class StoreError(Exception):
    """Raised when a deck cannot be read or written."""


class ItemRepository(Protocol):
    """Persistence collaborator used by the CLI and the session orchestrator."""

    def load_items(self) -> list[Item]: ...

    def save_items(self, items: Iterable[Item]) -> None: ...

    def save_session_stats(self, session_id: str, stats: dict[str, Any]) -> None: ...


# =============================================================================
# JSON file store
# =============================================================================


class JsonItemStore:
    """
    JSON-file backed item repository.

    save_items() upserts by item_id and rewrites the whole document through
    a temporary file so a crash never leaves a half-written deck.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def sessions_path(self) -> Path:
        return self.path.with_name(f"{self.path.stem}.sessions.jsonl")

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def load_items(self) -> list[Item]:
        """Load all items. A missing deck file is an empty deck."""
        return list(self._read_document().values())

    def save_items(self, items: Iterable[Item]) -> None:
        """Insert or replace items, keyed by item_id."""
        document = self._read_document()
        for item in items:
            document[item.item_id] = item
        self._write_document(document.values())

    def replace_all(self, items: Sequence[Item]) -> None:
        """Overwrite the deck with exactly these items."""
        self._write_document(items)

    def _read_document(self) -> dict[str, Item]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot read deck {self.path}: {e}") from e

        if isinstance(data, list):
            records = data
        elif isinstance(data, dict) and isinstance(data.get("items"), dict):
            records = list(data["items"].values())
        else:
            raise StoreError(f"Unrecognised deck format in {self.path}")

        items: dict[str, Item] = {}
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise StoreError(f"Invalid item #{index} in {self.path}: expected an object")
            if "item_id" not in record:
                # Hand-written entries get an id derived from the term so repeated loads agree
                record = {**record, "item_id": stable_item_id(str(record.get("term", "")))}
            try:
                item = Item.from_dict(record)
                validate_item_content(item.term, item.definition)
            except (KeyError, TypeError, ValueError) as e:
                raise StoreError(f"Invalid item #{index} in {self.path}: {e}") from e
            items[item.item_id] = item

        logger.debug(f"Loaded {len(items)} items from {self.path}")
        return items

    def _write_document(self, items: Iterable[Item]) -> None:
        document = {
            "version": DECK_VERSION,
            "saved_at": datetime.now().isoformat(),
            "items": {item.item_id: item.to_dict() for item in items},
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.stem}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2)
                os.replace(temp_path, self.path)
            except BaseException:
                Path(temp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StoreError(f"Cannot write deck {self.path}: {e}") from e

    # -------------------------------------------------------------------------
    # Session history
    # -------------------------------------------------------------------------

    def save_session_stats(self, session_id: str, stats: dict[str, Any]) -> None:
        record = {"session_id": session_id, "saved_at": datetime.now().isoformat(), **stats}
        try:
            self.sessions_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.sessions_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record) + "\n")
        except OSError as e:
            raise StoreError(f"Cannot write session history {self.sessions_path}: {e}") from e

    def load_session_history(self) -> list[dict[str, Any]]:
        """All recorded sessions, oldest first. Corrupt lines are skipped."""
        if not self.sessions_path.exists():
            return []

        sessions = []
        try:
            with open(self.sessions_path, "r", encoding="utf-8") as f:
                for line_number, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        sessions.append(json.loads(line))
                    except json.JSONDecodeError:
                        logger.warning(f"Skipping corrupt session record at line {line_number}")
        except OSError as e:
            raise StoreError(f"Cannot read session history {self.sessions_path}: {e}") from e

        return sessions


# =============================================================================
# In-memory store
# =============================================================================


class InMemoryItemStore:
    """Dictionary-backed repository for tests and embedding."""

    def __init__(self, items: Iterable[Item] = ()):
        self.items: dict[str, Item] = {item.item_id: item for item in items}
        self.sessions: list[dict[str, Any]] = []

    def load_items(self) -> list[Item]:
        return list(self.items.values())

    def save_items(self, items: Iterable[Item]) -> None:
        for item in items:
            self.items[item.item_id] = item

    def save_session_stats(self, session_id: str, stats: dict[str, Any]) -> None:
        self.sessions.append({"session_id": session_id, **stats})

    def load_session_history(self) -> list[dict[str, Any]]:
        return list(self.sessions)

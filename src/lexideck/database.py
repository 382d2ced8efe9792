"""Database module for persisting the saved-entry collection."""

import json
import logging
from datetime import datetime
from typing import Any, Optional

import duckdb
from pydantic import ValidationError

from .config import DEFAULT_COLLECTION_SLOT
from .core import Collection, DictionaryEntry, StoredCollection, find_saved, toggle_entry
from .errors import PersistenceCorruption

logger = logging.getLogger(__name__)


class EntryStore:
    """Keeps the user's collection in a single named slot of a DuckDB database.

    The slot holds a versioned JSON record. Writes always replace the whole
    record, so a partially updated collection can never be persisted.
    """

    def __init__(self, db_path: Optional[str] = None, slot: str = DEFAULT_COLLECTION_SLOT):
        """Initializes the EntryStore connection.

        Args:
            db_path: Optional path to a DuckDB file. If None, an in-memory database is used.
            slot: Name of the slot holding the collection.
        """
        self.db_path = db_path or ":memory:"
        self.slot = slot
        self.connection = duckdb.connect(self.db_path)
        self._create_tables()

    def _create_tables(self) -> None:
        self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS slots (
                name VARCHAR PRIMARY KEY,
                payload VARCHAR NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
        """
        )

    def load(self) -> Collection:
        """Reads the collection back from storage.

        Missing data yields an empty collection. So does corrupt data, after a
        warning is logged; corruption is never raised to the caller.

        Returns:
            The stored collection, newest first.
        """
        row = self.connection.execute(
            "SELECT payload FROM slots WHERE name = ?", (self.slot,)
        ).fetchone()
        if row is None:
            return ()

        try:
            return self._decode(row[0])
        except (ValueError, ValidationError) as e:
            error = PersistenceCorruption(self.slot, str(e))
            logger.warning("%s; starting with an empty collection", error)
            return ()

    @staticmethod
    def _decode(payload: str) -> Collection:
        data = json.loads(payload)
        # Unversioned records are bare arrays of saved words.
        if isinstance(data, list):
            data = {"version": 1, "entries": data}
        return StoredCollection.model_validate(data).entries

    def replace(self, collection: Collection) -> None:
        """Overwrites the stored collection with a new value.

        Args:
            collection: The complete new collection.
        """
        record = StoredCollection(entries=tuple(collection))
        self.connection.execute(
            """
            INSERT OR REPLACE INTO slots (name, payload, updated_at)
            VALUES (?, ?, ?)
        """,
            (self.slot, record.model_dump_json(), datetime.now()),
        )
        logger.debug("Stored %d entries in slot '%s'", len(record.entries), self.slot)

    def toggle(
        self,
        entry: DictionaryEntry,
        illustration_ref: Optional[str],
        saved_at: Optional[int] = None,
    ) -> bool:
        """Saves the entry if its term is not in the collection, removes it otherwise.

        Args:
            entry: The entry being toggled.
            illustration_ref: The illustration to keep with a newly saved entry.
            saved_at: Optional save timestamp in epoch milliseconds.

        Returns:
            True if the entry is saved after the call, False if it was removed.
        """
        updated = toggle_entry(self.load(), entry, illustration_ref, saved_at)
        self.replace(updated)
        return find_saved(updated, entry.term) is not None

    def contains(self, term: str) -> bool:
        return find_saved(self.load(), term) is not None

    def close(self) -> None:
        """Closes the database connection."""
        self.connection.close()

    def __enter__(self) -> "EntryStore":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

"""Read boundary to the dictionary source of truth.

Only the read the term index needs lives here; creating, updating and
deleting entries belongs to the hosting application, which must call
``DictionaryCacheManager.invalidate`` for the affected scope afterwards.
"""

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import List, Protocol

from termshield.core.exceptions import StoreUnavailableError
from termshield.models.dictionary import DictionaryRow, DictionaryScope

logger = logging.getLogger(__name__)


class DictionaryStore(Protocol):
    """Anything that can list a scope's dictionary rows."""

    async def fetch_rows(self, scope: DictionaryScope) -> List[DictionaryRow]:
        """Return all (dictionary_id, language_code, text) rows for ``scope``.

        Rows are unique per (dictionary_id, language_code) and returned in a
        stable order.

        Raises:
            StoreUnavailableError: If the store cannot be read
        """
        ...


class SQLiteDictionaryStore:
    """SQLite-backed dictionary store.

    Tables mirror the service schema: ``dictionary`` groups belong to an
    (entity, project) scope and own one ``dictionary_entry`` per language.
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS dictionary (
            id TEXT PRIMARY KEY,
            entity_id TEXT NOT NULL,
            project_id TEXT NOT NULL,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        );
        CREATE INDEX IF NOT EXISTS idx_dictionary_scope
            ON dictionary(entity_id, project_id);
        CREATE TABLE IF NOT EXISTS dictionary_entry (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            dictionary_id TEXT NOT NULL
                REFERENCES dictionary(id) ON DELETE CASCADE,
            language_code TEXT NOT NULL,
            text TEXT NOT NULL,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (dictionary_id, language_code)
        );
        CREATE INDEX IF NOT EXISTS idx_dictionary_entry_dictionary
            ON dictionary_entry(dictionary_id);
    """

    ROWS_QUERY = """
        SELECT e.dictionary_id, e.language_code, e.text
        FROM dictionary_entry e
        INNER JOIN dictionary d ON e.dictionary_id = d.id
        WHERE d.entity_id = ? AND d.project_id = ?
        ORDER BY e.id
    """

    def __init__(self, db_path: str):
        """Initialize the store, creating the schema if needed.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self) -> None:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.executescript(self.SCHEMA)
            conn.commit()
        finally:
            conn.close()

    def _fetch_rows_sync(self, scope: DictionaryScope) -> List[DictionaryRow]:
        conn = self._connect()
        try:
            cursor = conn.execute(
                self.ROWS_QUERY, (scope.entity_id, scope.project_id)
            )
            return [
                DictionaryRow(dictionary_id=r[0], language_code=r[1], text=r[2])
                for r in cursor.fetchall()
            ]
        finally:
            conn.close()

    async def fetch_rows(self, scope: DictionaryScope) -> List[DictionaryRow]:
        try:
            rows = await asyncio.to_thread(self._fetch_rows_sync, scope)
        except sqlite3.Error as e:
            logger.error(f"Dictionary store read failed for scope {scope.key}: {e}")
            raise StoreUnavailableError(scope.key, str(e)) from e

        logger.debug(f"Loaded {len(rows)} dictionary rows for scope {scope.key}")
        return rows

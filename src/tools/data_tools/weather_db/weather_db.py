"""Weather Database Tool - SQLite-backed local storage for app state."""

import json
import logging
import os
import sqlite3
from pathlib import Path

from pydantic import ValidationError as SchemaValidationError

from src.config import (
    STORAGE_LAST_SEARCH,
    STORAGE_RECENT_SEARCHES,
    STORAGE_USER_PREFERENCES,
)
from src.tools.shared_libraries.errors import StorageError

from .history import RecentSearchList, UserPreferences
from .models import SCHEMA_SQL


logger = logging.getLogger(__name__)


def get_db_path(db_dir: str | None = None) -> str:
    """Get the database file path."""
    directory = Path(db_dir or os.getenv('WEATHER_DB_DIR', './data'))
    directory.mkdir(parents=True, exist_ok=True)
    return str(directory / 'weather.db')


class LocalStorage:
    """String key-value store with localStorage semantics.

    Every read or write opens its own connection, so writes are visible
    immediately and last writer wins. Failures raise StorageError.
    """

    def __init__(self, db_path: str | None = None):
        self._db_path = db_path
        self._initialized = False

    @property
    def db_path(self) -> str:
        if self._db_path is None:
            self._db_path = get_db_path()
        return self._db_path

    def get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Initialize the database with required tables."""
        if self._initialized:
            return
        try:
            conn = self.get_connection()
        except (sqlite3.Error, OSError) as e:
            raise StorageError() from e
        try:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError() from e
        finally:
            conn.close()
        self._initialized = True

    def _execute(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        self.init_db()
        try:
            conn = self.get_connection()
        except (sqlite3.Error, OSError) as e:
            raise StorageError() from e
        try:
            rows = conn.execute(sql, params).fetchall()
            conn.commit()
            return rows
        except sqlite3.Error as e:
            logger.error(f'Database error: {e}')
            raise StorageError() from e
        finally:
            conn.close()

    def get_item(self, key: str) -> str | None:
        rows = self._execute('SELECT value FROM storage_items WHERE key = ?', (key,))
        return rows[0]['value'] if rows else None

    def set_item(self, key: str, value: str) -> None:
        self._execute(
            """
            INSERT OR REPLACE INTO storage_items (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            """,
            (key, value),
        )

    def remove_item(self, key: str) -> None:
        self._execute('DELETE FROM storage_items WHERE key = ?', (key,))

    def keys(self) -> list[str]:
        return [row['key'] for row in self._execute('SELECT key FROM storage_items ORDER BY key')]


def _load_json(storage: LocalStorage, key: str):
    stored = storage.get_item(key)
    if stored is None:
        return None
    try:
        return json.loads(stored)
    except json.JSONDecodeError as e:
        raise StorageError() from e


def load_recent_searches(storage: LocalStorage) -> RecentSearchList:
    """Load recent searches, or raise StorageError if they are unreadable."""
    data = _load_json(storage, STORAGE_RECENT_SEARCHES)
    if data is None:
        return RecentSearchList()
    if not isinstance(data, list):
        raise StorageError()
    return RecentSearchList([str(city) for city in data])


def save_recent_searches(storage: LocalStorage, searches: RecentSearchList) -> None:
    storage.set_item(STORAGE_RECENT_SEARCHES, json.dumps(list(searches), ensure_ascii=False))


def load_preferences(storage: LocalStorage) -> UserPreferences:
    """Load user preferences, or raise StorageError if they are unreadable."""
    data = _load_json(storage, STORAGE_USER_PREFERENCES)
    if data is None:
        return UserPreferences()
    if not isinstance(data, dict):
        raise StorageError()
    try:
        return UserPreferences.model_validate(data)
    except SchemaValidationError as e:
        raise StorageError() from e


def save_preferences(storage: LocalStorage, **preferences) -> UserPreferences:
    """Merge the given preferences into the stored ones and persist them.

    Returns:
        The merged preferences.
    """
    try:
        current = load_preferences(storage).model_dump()
    except StorageError:
        logger.warning('Stored preferences unreadable, overwriting')
        current = {}
    updated = UserPreferences.model_validate({**current, **preferences})
    storage.set_item(STORAGE_USER_PREFERENCES, updated.model_dump_json())
    return updated


def get_last_search(storage: LocalStorage) -> str | None:
    return storage.get_item(STORAGE_LAST_SEARCH)


def set_last_search(storage: LocalStorage, city: str) -> None:
    storage.set_item(STORAGE_LAST_SEARCH, city)

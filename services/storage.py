"""Key-value persistence standing in for browser local storage."""
import json
import sqlite3
from typing import Protocol, Optional, Dict, List, Any

from utils.logging_utils import get_logger

logger = get_logger(__name__)


class KeyValueStore(Protocol):
    """String key -> string value store (values are JSON-encoded by callers)."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class InMemoryStore:
    """Dict-backed store, used for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class SqliteStore:
    """Single-table SQLite store; one connection per call."""

    def __init__(self, path: str):
        self.path = path
        self._init_db()

    def _init_db(self) -> None:
        conn = sqlite3.connect(self.path)
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """
            )
            conn.commit()
        finally:
            conn.close()

    def get_item(self, key: str) -> Optional[str]:
        conn = sqlite3.connect(self.path)
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        conn = sqlite3.connect(self.path)
        try:
            conn.execute("REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value))
            conn.commit()
        finally:
            conn.close()

    def remove_item(self, key: str) -> None:
        conn = sqlite3.connect(self.path)
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()


def load_json(store: KeyValueStore, key: str) -> Any:
    """
    Read and decode a JSON value.

    Returns:
        Decoded value, or None if the key is missing

    Raises:
        sqlite3.Error, json.JSONDecodeError: On storage or decode failure
    """
    raw = store.get_item(key)
    if raw is None:
        return None
    return json.loads(raw)


def load_json_list(store: KeyValueStore, key: str) -> List[Any]:
    """
    Read a JSON list, degrading to an empty list on any storage problem.

    Missing keys, corrupt JSON, non-list values and storage errors all
    yield []; problems are logged rather than raised.
    """
    try:
        value = load_json(store, key)
    except (sqlite3.Error, OSError, json.JSONDecodeError, TypeError) as e:
        logger.error(f"Failed to load '{key}' from storage: {str(e)}")
        return []

    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning(f"Expected a list under '{key}', got {type(value).__name__}. Ignoring it.")
        return []
    return value


def save_json(store: KeyValueStore, key: str, value: Any) -> None:
    """Encode a value as JSON and write it."""
    store.set_item(key, json.dumps(value))

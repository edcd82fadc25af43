"""Durable key/value storage backed by SQLite.

Every value is stored as JSON text in a single ItemTable, keyed by the
storage layout below. A value that fails to decode is treated as missing:
malformed durable state is never fatal.
"""

import json
import logging
import sqlite3
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .config import DEFAULT_MODE, DEFAULT_TIMEOUT_MINUTES
from .core import Settings

logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"
ACTIVITY_KEY = "activityByTab"
SUSPENDED_TODAY_KEY = "suspendedToday"
SUSPENDED_TODAY_DATE_KEY = "suspendedTodayDate"
CLOSED_SAVED_KEY = "closedAndSaved"
LAST_RUN_KEY = "lastSchedulerRun"
PENDING_BACKUP_KEY = "pendingBackup"
SUSPENDED_PREFIX = "suspended_"
BACKUP_PREFIX = "backup_"


def suspended_key(tab_id: int) -> str:
    """Key of the restore record for a placeholder-suspended tab."""
    return f"{SUSPENDED_PREFIX}{tab_id}"


def backup_key(date: str) -> str:
    """Key of the backup bucket for a YYYY-MM-DD date."""
    return f"{BACKUP_PREFIX}{date}"


class KeyValueStore:
    """JSON key/value store in a SQLite file.

    Each call opens its own connection and commits before returning, so a
    value is durable as soon as set() or set_many() returns.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._create_schema()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.path), timeout=10.0)

    def _create_schema(self) -> None:
        conn = self._connect()
        try:
            conn.execute("CREATE TABLE IF NOT EXISTS ItemTable (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
            conn.commit()
        finally:
            conn.close()

    def _decode(self, key: str, raw: str) -> Any:
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning("Discarding malformed value for '%s': %s", key, e)
            return None

    def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded value, or default if missing or malformed."""
        conn = self._connect()
        try:
            row = conn.execute("SELECT value FROM ItemTable WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        if row is None:
            return default
        value = self._decode(key, row[0])
        return default if value is None else value

    def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        """Return the stored values for the keys that exist and decode."""
        keys = list(keys)
        if not keys:
            return {}
        placeholders = ", ".join("?" for _ in keys)
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT key, value FROM ItemTable WHERE key IN ({placeholders})", keys
            ).fetchall()
        finally:
            conn.close()
        result = {}
        for key, raw in rows:
            value = self._decode(key, raw)
            if value is not None:
                result[key] = value
        return result

    def set(self, key: str, value: Any) -> None:
        """Write one value."""
        self.set_many({key: value})

    def set_many(self, values: dict[str, Any]) -> None:
        """Write all values in one transaction."""
        if not values:
            return
        rows = [(key, json.dumps(value, ensure_ascii=False)) for key, value in values.items()]
        conn = self._connect()
        try:
            with conn:
                conn.executemany(
                    "INSERT INTO ItemTable (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    rows,
                )
        finally:
            conn.close()

    def remove(self, *keys: str) -> None:
        """Delete keys; missing keys are ignored."""
        if not keys:
            return
        conn = self._connect()
        try:
            with conn:
                conn.executemany("DELETE FROM ItemTable WHERE key = ?", [(k,) for k in keys])
        finally:
            conn.close()

    def items(self, prefix: str = "") -> dict[str, Any]:
        """Return every decodable value whose key starts with prefix."""
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT key, value FROM ItemTable WHERE key LIKE ? ESCAPE '\\' ORDER BY key",
                (escaped + "%",),
            ).fetchall()
        finally:
            conn.close()
        result = {}
        for key, raw in rows:
            value = self._decode(key, raw)
            if value is not None:
                result[key] = value
        return result


def load_settings(store: KeyValueStore) -> Settings:
    """Load the suspension policy, falling back to defaults field by field."""
    raw = store.get(SETTINGS_KEY)
    if not isinstance(raw, dict):
        return Settings()

    timeout = raw.get("timeoutMinutes", DEFAULT_TIMEOUT_MINUTES)
    if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout <= 0:
        timeout = DEFAULT_TIMEOUT_MINUTES

    return Settings(
        enabled=raw.get("enabled") is not False,
        timeout_minutes=timeout,
        mode="placeholder" if raw.get("mode") == "placeholder" else DEFAULT_MODE,
    )


def save_settings(store: KeyValueStore, settings: Settings) -> None:
    store.set(SETTINGS_KEY, settings.to_dict())

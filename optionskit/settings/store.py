"""Persistence of option records and the shared published-options accessor.

Every panel stores its values as a single record keyed ``<func>_settings`` in a
key-value backend. Writes replace the whole record, so two sessions saving
disjoint settings concurrently end with whichever record was written last.
"""

from __future__ import annotations

import copy
import json
import os
import sqlite3
import threading
import time
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, Iterator, Optional

from optionskit.config import (
    PUBLISHED_SLOT_SUFFIX,
    SETTINGS_DB_NAME,
    SETTINGS_FILE_NAME,
    SETTINGS_RECORD_SUFFIX,
)
from optionskit.logger import logger
from optionskit.paths import data_path
from optionskit.utils import func_slug, read_json, write_json

SCHEMA_VERSION = 1


class MemoryBackend:
    """In-process key-value backend, mostly useful for tests and embedding."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key not in self._data:
                return default
            return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> bool:
        with self._lock:
            self._data[key] = copy.deepcopy(value)
        return True


class JsonFileBackend:
    """All records in one JSON document on disk."""

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or data_path(SETTINGS_FILE_NAME)
        self._lock = threading.Lock()

    def _read_records(self) -> Dict[str, Any]:
        data = read_json(self.path)
        records = data.get("records")
        return records if isinstance(records, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read_records().get(key, default)

    def _read_records_for_write(self) -> Optional[Dict[str, Any]]:
        """Like ``_read_records`` but ``None`` when an existing file cannot be parsed."""
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.warn(f"OptionsKit: refusing to overwrite unreadable {self.path}: {exc}")
            return None
        records = data.get("records", {}) if isinstance(data, dict) else None
        if not isinstance(records, dict):
            logger.warn(f"OptionsKit: refusing to overwrite malformed {self.path}")
            return None
        return records

    def set(self, key: str, value: Any) -> bool:
        with self._lock:
            records = self._read_records_for_write()
            if records is None:
                return False
            records[key] = value
            return write_json(self.path, {"version": SCHEMA_VERSION, "records": records})


class SqliteBackend:
    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path or data_path(SETTINGS_DB_NAME)
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self) -> None:
        try:
            directory = os.path.dirname(self.db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS option_records (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at INTEGER
                    )
                """)
                conn.commit()
        except Exception as exc:
            logger.warn(f"OptionsKit: option DB init failed: {exc}")

    def get(self, key: str, default: Any = None) -> Any:
        try:
            with self._lock, sqlite3.connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value FROM option_records WHERE key = ?", (key,)
                ).fetchone()
        except Exception as exc:
            logger.warn(f"OptionsKit: option DB read failed for {key}: {exc}")
            return default
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except ValueError as exc:
            logger.warn(f"OptionsKit: corrupt option record {key}: {exc}")
            return default

    def set(self, key: str, value: Any) -> bool:
        try:
            payload = json.dumps(value)
            now = int(time.time())
            with self._lock, sqlite3.connect(self.db_path) as conn:
                conn.execute("""
                    INSERT INTO option_records (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                """, (key, payload, now))
                conn.commit()
        except Exception as exc:
            logger.warn(f"OptionsKit: option DB write failed for {key}: {exc}")
            return False
        return True


class PublishedOptions(Mapping):
    """Read-only view of each panel's current values, addressed by slot name.

    ``published["my_panel_options"]`` or ``published.for_panel("my-panel")``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._slots: Dict[str, Mapping] = {}

    @staticmethod
    def slot_name(panel_id: str) -> str:
        return f"{func_slug(panel_id)}{PUBLISHED_SLOT_SUFFIX}"

    def publish(self, panel_id: str, values: Mapping) -> None:
        view = MappingProxyType(copy.deepcopy(dict(values)))
        with self._lock:
            self._slots[self.slot_name(panel_id)] = view

    def for_panel(self, panel_id: str) -> Mapping:
        with self._lock:
            return self._slots.get(self.slot_name(panel_id), MappingProxyType({}))

    def clear(self) -> None:
        with self._lock:
            self._slots.clear()

    def __getitem__(self, slot: str) -> Mapping:
        with self._lock:
            return self._slots[slot]

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._slots))

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)


_PUBLISHED_OPTIONS: Optional[PublishedOptions] = None


def get_published_options() -> PublishedOptions:
    global _PUBLISHED_OPTIONS
    if _PUBLISHED_OPTIONS is None:
        _PUBLISHED_OPTIONS = PublishedOptions()
    return _PUBLISHED_OPTIONS


class OptionStore:
    """Loads a panel record once per instance and writes it back on ``save``.

    Build one store per request so every request starts from the persisted state.
    """

    def __init__(self, backend: Any, published: Optional[PublishedOptions] = None) -> None:
        self.backend = backend
        self.published = published if published is not None else get_published_options()
        self._loaded: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def record_key(panel_id: str) -> str:
        return f"{func_slug(panel_id)}{SETTINGS_RECORD_SUFFIX}"

    def load(self, panel_id: str) -> Dict[str, Any]:
        func = func_slug(panel_id)
        if func not in self._loaded:
            raw = self.backend.get(self.record_key(panel_id), None)
            if raw is None:
                values: Dict[str, Any] = {}
            elif isinstance(raw, dict):
                values = raw
            else:
                logger.warn(
                    f"OptionsKit: stored record {self.record_key(panel_id)} is "
                    f"{type(raw).__name__}; treating as empty"
                )
                values = {}
            self._loaded[func] = values
            self.published.publish(panel_id, values)
        return copy.deepcopy(self._loaded[func])

    def save(self, panel_id: str, values: Mapping) -> bool:
        key = self.record_key(panel_id)
        snapshot = copy.deepcopy(dict(values))
        try:
            ok = bool(self.backend.set(key, snapshot))
        except Exception as exc:
            logger.warn(f"OptionsKit: failed to persist {key}: {exc}")
            ok = False
        if not ok:
            return False
        self._loaded[func_slug(panel_id)] = snapshot
        self.published.publish(panel_id, snapshot)
        return True

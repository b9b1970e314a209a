"""A small persistent key/value cache with expiring entries."""

from __future__ import annotations

import base64
import binascii
import dataclasses
import json
import os
import re
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from .consts import APPLICATION_NAME

AUTO_PURGE_INTERVAL = 60.0
_OPEN_TIMEOUT = 5.0
_KEY_SUFFIXES = ("_expires_at", "_hash", "_updated_at")


def _format_timestamp(moment: datetime) -> str:
    return moment.astimezone().isoformat(timespec="seconds")


def _now() -> datetime:
    return datetime.now().astimezone()


def _parse_timestamp(text: str) -> datetime | None:
    try:
        return datetime.fromisoformat(text).astimezone(timezone.utc)
    except (TypeError, ValueError):
        return None


def _timestamp(value: datetime | str | None, default: datetime) -> str:
    if value is None:
        return _format_timestamp(default)
    if isinstance(value, datetime):
        return _format_timestamp(value)
    return value


def expires_at(ttl_minutes: int) -> str:
    """The ISO 8601 timestamp `ttl_minutes` from now."""
    return _format_timestamp(_now() + timedelta(minutes=ttl_minutes))


@dataclass
class CacheEntry:
    value: str = ""
    hash: str = ""
    algorithm: str = ""
    expires_at: str = ""
    updated_at: str = ""

    def is_expired(self) -> bool:
        if self.expires_at == "":
            return True
        moment = _parse_timestamp(self.expires_at)
        if moment is None:
            return True
        return moment < datetime.now(timezone.utc)

    def encode(self) -> str:
        """Serialise to JSON with the value base64-encoded."""
        return json.dumps(
            {
                "value": base64.b64encode(self.value.encode("utf-8")).decode("ascii"),
                "hash": self.hash,
                "algorithm": self.algorithm,
                "expires_at": self.expires_at,
                "updated_at": self.updated_at,
            }
        )


def decode_entry(data: str | bytes) -> CacheEntry:
    """Parse an encoded entry, decoding its base64 value; raise ValueError if malformed."""
    raw = json.loads(data)
    if not isinstance(raw, dict):
        raise ValueError("cache entry is not an object")

    value = str(raw.get("value", "") or "")
    if value:
        try:
            value = base64.b64decode(value, validate=True).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            pass

    return CacheEntry(
        value=value,
        hash=str(raw.get("hash", "") or ""),
        algorithm=str(raw.get("algorithm", "") or ""),
        expires_at=str(raw.get("expires_at", "") or ""),
        updated_at=str(raw.get("updated_at", "") or ""),
    )


def new_cache_entry(obj: Any, ttl_minutes: int) -> CacheEntry:
    """An entry whose value is `obj` serialised as JSON."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        obj = dataclasses.asdict(obj)
    now = _now()
    return CacheEntry(
        value=json.dumps(obj),
        expires_at=_format_timestamp(now + timedelta(minutes=ttl_minutes)),
        updated_at=_format_timestamp(now),
    )


def _fs_safe_name(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "_", name)


class Cache:
    """Expiring entries stored in a database file under `storage_path`.

    Expired entries are purged on open and then periodically in the background.
    """

    def __init__(self, name: str, storage_path, ttl_minutes: int):
        self.name = name
        self.path = os.fspath(storage_path)
        self.default_ttl = ttl_minutes
        self.enabled = False
        self.filename = ""
        self._db: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._purger: threading.Thread | None = None

        try:
            os.makedirs(self.path, mode=0o744, exist_ok=True)
        except OSError:
            pass

        self._open()

    def __enter__(self) -> Cache:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _open(self) -> None:
        filename = _fs_safe_name(self.name)
        if not filename.endswith(".db"):
            filename += ".db"
        if filename[: -len(".db")] == "":
            filename = APPLICATION_NAME + ".db"
        if self.name == "":
            self.name = filename[: -len(".db")]

        self.filename = os.path.join(self.path, filename)

        try:
            db = sqlite3.connect(
                self.filename,
                timeout=_OPEN_TIMEOUT,
                check_same_thread=False,
                isolation_level=None,
            )
            db.execute(
                "CREATE TABLE IF NOT EXISTS entries ("
                " bucket TEXT NOT NULL, key TEXT NOT NULL, value TEXT NOT NULL,"
                " PRIMARY KEY (bucket, key))"
            )
        except sqlite3.Error:
            return

        self._db = db
        self.enabled = True
        self._start_auto_purge()

    def _start_auto_purge(self) -> None:
        if self._purger is not None:
            return
        self.purge_expired()
        self._purger = threading.Thread(target=self._auto_purge, daemon=True)
        self._purger.start()

    def _auto_purge(self) -> None:
        while not self._stop.wait(AUTO_PURGE_INTERVAL):
            self.purge_expired()

    def close(self, remove_file: bool = False) -> None:
        """Close the database, optionally deleting its file."""
        self._stop.set()
        with self._lock:
            if self._db is not None:
                self._db.close()
                self._db = None
        if remove_file and self.filename and os.path.exists(self.filename):
            os.remove(self.filename)

    def create_entry(
        self,
        value: str,
        expires_at: datetime | str | None = None,
        hash_value: str = "",
        algorithm: str = "",
        updated_at: datetime | str | None = None,
    ) -> CacheEntry:
        now = _now()
        return CacheEntry(
            value=value,
            hash=hash_value,
            algorithm=algorithm,
            expires_at=_timestamp(expires_at, now + timedelta(minutes=self.default_ttl)),
            updated_at=_timestamp(updated_at, now),
        )

    def make_key(self, key: str) -> str:
        for suffix in _KEY_SUFFIXES:
            if key.endswith(suffix):
                key = key[: -len(suffix)]
        return key

    def _keys(self) -> list[str]:
        with self._lock:
            if self._db is None:
                return []
            rows = self._db.execute(
                "SELECT key FROM entries WHERE bucket = ?", (self.name,)
            ).fetchall()
        return [row[0] for row in rows]

    def get(self, key: str) -> CacheEntry | None:
        """The stored, unexpired entry for `key`, or None."""
        with self._lock:
            if self._db is None:
                return None
            row = self._db.execute(
                "SELECT value FROM entries WHERE bucket = ? AND key = ?",
                (self.name, self.make_key(key)),
            ).fetchone()
        if row is None:
            return None
        try:
            entry = decode_entry(row[0])
        except ValueError:
            return None
        if entry.is_expired():
            return None
        return entry

    def set(self, key: str, entry: CacheEntry, ttl_minutes: int | None = None) -> None:
        """Store `entry` under `key`; its own expiry timestamp governs its lifetime."""
        with self._lock:
            if self._db is None:
                return
            self._db.execute(
                "INSERT OR REPLACE INTO entries (bucket, key, value) VALUES (?, ?, ?)",
                (self.name, key, entry.encode()),
            )

    def has(self, key: str) -> bool:
        entry = self.get(key)
        return entry is not None and not entry.is_expired()

    def remove(self, key: str) -> None:
        if not key:
            return
        with self._lock:
            if self._db is None:
                return
            self._db.execute(
                "DELETE FROM entries WHERE bucket = ? AND key = ?", (self.name, key)
            )

    def is_expired(self, key: str) -> bool:
        entry = self.get(key)
        if entry is None:
            return True
        return entry.is_expired()

    def purge_expired(self) -> None:
        """Delete every expired or unreadable entry."""
        for key in self._keys():
            if self.is_expired(key):
                self.remove(key)

    def make_cache_key(self, prefix: str, name: str) -> str:
        if prefix.endswith(":"):
            prefix = prefix[:-1]
        if not prefix:
            return name
        return prefix + ":" + name
from __future__ import annotations

"""
Emission state adapter
======================

Purpose
-------
Key-value persistence for the controller's configuration record (and the
small contract-info record written at instantiate time).

Two backends share one tiny interface (`KeyValueStore`):
- `MemoryStore`  — thread-safe dict, for tests and in-process hosts.
- `SqliteStore`  — a single `kv` table, WAL journal, transactional writes.

`ConfigRepository` sits on top and owns the encoding: canonical JSON (sorted
keys, compact separators), addresses as hex, amounts as decimal strings.

Failure model
-------------
- Any backend exception is wrapped in `StorageFault`; the controller does not
  retry, the host decides.
- `load()` on an empty key raises `NotInitialized` (a `StorageFault`).
- A record that cannot be decoded raises `StorageFault` ("corrupt").

Example
-------
    store = SqliteStore("emission.db")
    repo = ConfigRepository(store, key="moon_config")
    repo.save(config)
    assert repo.load() == config
"""

import contextlib
import json
import logging
import sqlite3
import threading
from typing import Any, Dict, Iterator, Mapping, Optional, Protocol, runtime_checkable

from emission.errors import EmissionError, NotInitialized, StorageFault
from emission.schedule import EmissionConfig

log = logging.getLogger(__name__)

MAX_KEY_BYTES = 64
CONTRACT_INFO_KEY = "contract_info"


# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal backend interface for the controller's storage."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def set(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def exists(self, key: bytes) -> bool: ...


class MemoryStore:
    """Thread-safe in-memory backend for local runs and tests."""

    def __init__(self) -> None:
        self._store: Dict[bytes, bytes] = {}
        self._lock = threading.RLock()

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._store.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        with self._lock:
            self._store[key] = value

    def delete(self, key: bytes) -> None:
        with self._lock:
            self._store.pop(key, None)

    def exists(self, key: bytes) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


class SqliteStore:
    """
    SQLite-backed key-value store.

    `path` may be a filesystem path, ":memory:", or a URI
    (e.g. "file:emission.db?mode=rwc").
    """

    SCHEMA_VERSION = 1

    def __init__(self, path: str) -> None:
        uri = path.startswith("file:")
        try:
            self._db = sqlite3.connect(
                path,
                uri=uri,
                check_same_thread=False,
                isolation_level=None,  # autocommit; transactions are explicit
            )
        except sqlite3.Error as e:
            raise StorageFault(f"cannot open state db: {e}", details={"path": path}) from e
        self._path = path
        self._lock = threading.RLock()
        self._apply_pragmas()
        with self.tx():
            self._migrate()

    # -- lifecycle -------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "SqliteStore":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @contextlib.contextmanager
    def tx(self) -> Iterator[None]:
        """
        Transaction context manager.

            with store.tx():
                store.set(...)
        """
        with self._lock:
            try:
                self._db.execute("BEGIN IMMEDIATE")
                yield
                self._db.execute("COMMIT")
            except BaseException:
                try:
                    self._db.execute("ROLLBACK")
                finally:
                    raise

    def _apply_pragmas(self) -> None:
        cur = self._db.cursor()
        cur.execute("PRAGMA journal_mode=WAL")
        cur.execute("PRAGMA synchronous=NORMAL")
        cur.execute("PRAGMA temp_store=MEMORY")
        cur.close()

    def _migrate(self) -> None:
        cur = self._db.cursor()
        cur.executescript(
            """
            CREATE TABLE IF NOT EXISTS meta (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS kv (
                key   BLOB PRIMARY KEY,
                value BLOB NOT NULL
            );
            """
        )
        cur.execute(
            "INSERT OR IGNORE INTO meta(key, value) VALUES('schema_version', ?)",
            (str(self.SCHEMA_VERSION),),
        )
        cur.close()

    # -- KeyValueStore ---------------------------------------------------------

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            try:
                row = self._db.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            except sqlite3.Error as e:
                raise StorageFault(f"read failed: {e}") from e
        return bytes(row[0]) if row else None

    def set(self, key: bytes, value: bytes) -> None:
        try:
            with self.tx():
                self._db.execute(
                    "INSERT INTO kv(key, value) VALUES(?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )
        except sqlite3.Error as e:
            raise StorageFault(f"write failed: {e}") from e

    def delete(self, key: bytes) -> None:
        try:
            with self.tx():
                self._db.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise StorageFault(f"delete failed: {e}") from e

    def exists(self, key: bytes) -> bool:
        return self.get(key) is not None


# --------------------------- Validation helpers --------------------------- #


def _key_bytes(key: str | bytes) -> bytes:
    k = key.encode("utf-8") if isinstance(key, str) else bytes(key)
    if not k:
        raise StorageFault("storage key must be non-empty")
    if len(k) > MAX_KEY_BYTES:
        raise StorageFault(f"storage key too long (>{MAX_KEY_BYTES} bytes)")
    return k


def _to_json_blob(obj: Mapping[str, Any]) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _from_json_blob(blob: bytes) -> Any:
    return json.loads(blob.decode("utf-8"))


# ------------------------------- Repository ------------------------------- #


class ConfigRepository:
    """
    load/save of the `EmissionConfig` record under one storage key.

    Every backend error surfaces as `StorageFault`; `EmissionError`s raised by
    the backend itself pass through unchanged.
    """

    def __init__(self, store: KeyValueStore, key: str | bytes = "moon_config") -> None:
        self.store = store
        self.key = _key_bytes(key)

    def _get(self, key: bytes) -> Optional[bytes]:
        try:
            return self.store.get(key)
        except EmissionError:
            raise
        except Exception as e:
            raise StorageFault(f"storage read failed: {e}", details={"key": key.decode("utf-8", "replace")}) from e

    def _set(self, key: bytes, value: bytes) -> None:
        try:
            self.store.set(key, value)
        except EmissionError:
            raise
        except Exception as e:
            raise StorageFault(f"storage write failed: {e}", details={"key": key.decode("utf-8", "replace")}) from e

    def exists(self) -> bool:
        return self._get(self.key) is not None

    def load(self) -> EmissionConfig:
        blob = self._get(self.key)
        if blob is None:
            raise NotInitialized("no configuration record", details={"key": self.key.decode("utf-8", "replace")})
        try:
            return EmissionConfig.load(_from_json_blob(blob))
        except (UnicodeDecodeError, json.JSONDecodeError, EmissionError) as e:
            raise StorageFault(
                f"corrupt configuration record: {e}",
                details={"key": self.key.decode("utf-8", "replace")},
            ) from e

    def save(self, config: EmissionConfig) -> None:
        self._set(self.key, _to_json_blob(config.dump()))
        log.debug("saved configuration record key=%s", self.key.decode("utf-8", "replace"))

    # -- contract info ----------------------------------------------------------

    def load_contract_info(self) -> Optional[Dict[str, str]]:
        blob = self._get(_key_bytes(CONTRACT_INFO_KEY))
        if blob is None:
            return None
        try:
            data = _from_json_blob(blob)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageFault(f"corrupt contract info: {e}") from e
        if not isinstance(data, dict):
            raise StorageFault("corrupt contract info", details={"key": CONTRACT_INFO_KEY})
        return {"contract": str(data.get("contract", "")), "version": str(data.get("version", ""))}

    def save_contract_info(self, contract: str, version: str) -> None:
        self._set(_key_bytes(CONTRACT_INFO_KEY), _to_json_blob({"contract": contract, "version": version}))


__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "SqliteStore",
    "ConfigRepository",
    "CONTRACT_INFO_KEY",
]

from __future__ import annotations

import threading
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ridebattle.db.session import session_scope
from ridebattle.models.key_value import KeyValueEntry


class KeyValueStoreError(OSError):
    """Raised when the store cannot read or write a value."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)


class SqlKeyValueStore:
    """Opaque blobs stored one row per key in ``key_value_entries``."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> bytes | None:
        try:
            with session_scope(self._session_factory) as session:
                statement = select(KeyValueEntry.value).where(KeyValueEntry.key == key)
                return session.scalar(statement)
        except SQLAlchemyError as exc:
            raise KeyValueStoreError(f"Failed to read key {key!r}") from exc

    def set(self, key: str, value: bytes) -> None:
        try:
            with session_scope(self._session_factory) as session:
                entry = session.scalar(select(KeyValueEntry).where(KeyValueEntry.key == key))
                if entry is None:
                    entry = KeyValueEntry(key=key, value=value)
                else:
                    entry.value = value
                session.add(entry)
        except SQLAlchemyError as exc:
            raise KeyValueStoreError(f"Failed to write key {key!r}") from exc

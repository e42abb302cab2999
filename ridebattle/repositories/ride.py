from __future__ import annotations

import secrets
import string
import threading
import time
from datetime import datetime, timezone
from typing import Callable

import structlog
from pydantic import TypeAdapter, ValidationError

from ridebattle.core.errors import CorruptState, PersistenceFailed
from ridebattle.repositories.key_value import KeyValueStore, KeyValueStoreError
from ridebattle.schemas.ride import Ride, RideDraft

logger = structlog.get_logger(__name__)

DEFAULT_STORAGE_KEY = "RIDE_BATTLE_RIDES"
_ID_ALPHABET = string.digits + string.ascii_lowercase
_RIDES_ADAPTER = TypeAdapter(list[Ride])


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def sort_newest_first(rides: list[Ride]) -> list[Ride]:
    # sorted() stays stable with reverse=True, so equal dates keep stored order.
    return sorted(rides, key=lambda ride: _ensure_utc(ride.date), reverse=True)


def _generate_ride_id(now_ms: int) -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{now_ms}{suffix}"


class RideRepository:
    """Completed rides persisted as a single JSON blob in a key-value store.

    Writes are read-modify-write of the whole collection, so they run inside one
    exclusive section per repository.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = DEFAULT_STORAGE_KEY,
        time_ms: Callable[[], int] = lambda: time.time_ns() // 1_000_000,
    ) -> None:
        self._store = store
        self._key = key
        self._time_ms = time_ms
        self._lock = threading.Lock()
        self._rides: list[Ride] = []
        self._issued_ids: set[str] = set()

    def load(self) -> list[Ride]:
        with self._lock:
            try:
                blob = self._store.get(self._key)
            except KeyValueStoreError as exc:
                raise PersistenceFailed("Failed to read stored rides") from exc

            if blob is None:
                self._rides = []
                return []

            try:
                rides = _RIDES_ADAPTER.validate_json(blob)
            except ValidationError as exc:
                self._rides = []
                logger.error(
                    "corrupt_ride_blob",
                    key=self._key,
                    size=len(blob),
                    errors=exc.error_count(),
                )
                self._preserve_corrupt_locked(blob)
                raise CorruptState("Stored rides could not be parsed") from exc

            ids = [ride.id for ride in rides]
            if len(set(ids)) != len(ids):
                self._rides = []
                logger.error("corrupt_ride_blob", key=self._key, size=len(blob), reason="duplicate_ids")
                self._preserve_corrupt_locked(blob)
                raise CorruptState("Stored rides contain duplicate ids")

            self._rides = sort_newest_first(rides)
            self._issued_ids.update(ride.id for ride in self._rides)
            logger.info("rides_loaded", key=self._key, count=len(self._rides))
            return list(self._rides)

    def list(self) -> list[Ride]:
        return list(self._rides)

    def get(self, ride_id: str) -> Ride | None:
        return next((ride for ride in self._rides if ride.id == ride_id), None)

    def append(self, draft: RideDraft) -> Ride:
        """Prepend ``draft`` with a fresh id and persist the whole collection.

        The caller is expected to append rides in date order; the newest-first
        invariant is only re-established by ``load``.
        """
        with self._lock:
            ride = Ride.from_draft(self._next_id_locked(), draft)
            self._rides = [ride, *self._rides]
            self._persist_locked(ride)
            logger.info("ride_appended", ride_id=ride.id, count=len(self._rides))
            return ride

    def remove(self, ride_id: str) -> bool:
        with self._lock:
            remaining = [ride for ride in self._rides if ride.id != ride_id]
            if len(remaining) == len(self._rides):
                return False
            self._rides = remaining
            self._persist_locked(None)
            logger.info("ride_removed", ride_id=ride_id, count=len(self._rides))
            return True

    def _next_id_locked(self) -> str:
        ride_id = _generate_ride_id(self._time_ms())
        while ride_id in self._issued_ids:
            ride_id = _generate_ride_id(self._time_ms())
        self._issued_ids.add(ride_id)
        return ride_id

    @property
    def corrupt_key(self) -> str:
        return f"{self._key}.corrupt"

    def _preserve_corrupt_locked(self, blob: bytes) -> None:
        # The next write replaces the main key, so keep the unreadable bytes aside.
        try:
            self._store.set(self.corrupt_key, blob)
        except OSError as exc:
            logger.warning("corrupt_ride_blob_not_preserved", key=self.corrupt_key, error=str(exc))

    def _persist_locked(self, ride: Ride | None) -> None:
        payload = _RIDES_ADAPTER.dump_json(self._rides, by_alias=True)
        try:
            self._store.set(self._key, payload)
        except OSError as exc:
            logger.warning("ride_persist_failed", key=self._key, error=str(exc))
            raise PersistenceFailed("Failed to persist rides", ride=ride) from exc

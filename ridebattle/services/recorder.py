from __future__ import annotations

import threading
from datetime import datetime, timezone
from functools import partial
from typing import Callable

import structlog

from ridebattle.core.errors import InvalidState, PermissionDenied, TrackingUnavailable
from ridebattle.schemas.ride import Fix, RecorderState, RideDraft, SessionSnapshot
from ridebattle.services.geo import haversine_km
from ridebattle.services.position_source import PositionSource, Subscription
from ridebattle.services.ticker import IntervalTicker, Ticker

logger = structlog.get_logger(__name__)

SnapshotListener = Callable[[SessionSnapshot], None]


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def average_speed_kmh(distance_km: float, duration_seconds: int) -> float:
    if duration_seconds <= 0:
        return 0.0
    return distance_km / (duration_seconds / 3600)


class RideRecorder:
    """Session state machine fed by a position source and a one-second ticker.

    Fixes, ticks and transitions are serialised through one lock so the
    accumulated distance and elapsed time only ever have a single writer.
    Listeners receive a snapshot after each change and are called outside the
    lock.
    """

    def __init__(
        self,
        position_source: PositionSource,
        *,
        ticker_factory: Callable[[], Ticker] = IntervalTicker,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._source = position_source
        self._ticker_factory = ticker_factory
        self._clock = clock
        self._lock = threading.Lock()
        self._listeners: list[SnapshotListener] = []

        self._state = RecorderState.idle
        self._elapsed_seconds = 0
        self._distance_km = 0.0
        self._fixes: list[Fix] = []
        self._subscription: Subscription | None = None
        self._ticker: Ticker | None = None
        # Bumped on every start; callbacks bound to an older session are ignored.
        self._generation = 0

    @property
    def state(self) -> RecorderState:
        return self._state

    def add_listener(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def start(self) -> SessionSnapshot:
        with self._lock:
            if self._state is not RecorderState.idle:
                raise InvalidState(f"Cannot start a session while {self._state.value}")

            try:
                granted = self._source.request_authorization()
            except Exception as exc:
                raise TrackingUnavailable("Position source failed during authorization") from exc
            if not granted:
                raise PermissionDenied("Location permission was not granted")

            self._generation += 1
            generation = self._generation
            try:
                subscription = self._source.subscribe(partial(self.handle_fix, generation=generation))
            except Exception as exc:
                raise TrackingUnavailable("Unable to subscribe to position updates") from exc

            self._elapsed_seconds = 0
            self._distance_km = 0.0
            self._fixes = []
            self._subscription = subscription
            self._state = RecorderState.recording
            try:
                self._ticker = self._ticker_factory()
                self._ticker.start(partial(self.tick, generation=generation))
            except Exception as exc:
                self._release_locked()
                self._state = RecorderState.idle
                raise TrackingUnavailable("Unable to start the session timer") from exc

            snapshot = self._snapshot_locked()

        logger.info("session_started")
        self._notify(snapshot)
        return snapshot

    def handle_fix(self, fix: Fix, *, generation: int | None = None) -> None:
        with self._lock:
            if not self._accepts_locked(generation):
                return
            if self._fixes:
                self._distance_km += haversine_km(self._fixes[-1], fix)
            self._fixes.append(fix)
            snapshot = self._snapshot_locked()
        self._notify(snapshot)

    def tick(self, *, generation: int | None = None) -> None:
        with self._lock:
            if not self._accepts_locked(generation):
                return
            self._elapsed_seconds += 1
            snapshot = self._snapshot_locked()
        self._notify(snapshot)

    def stop(self) -> RideDraft:
        with self._lock:
            if self._state is not RecorderState.recording:
                raise InvalidState(f"Cannot stop a session while {self._state.value}")

            self._state = RecorderState.stopped
            ticker = self._release_locked()

            draft = RideDraft(
                date=self._clock(),
                duration_sec=self._elapsed_seconds,
                distance_km=self._distance_km,
                avg_speed_kmh=average_speed_kmh(self._distance_km, self._elapsed_seconds),
            )
            fix_count = len(self._fixes)
            self._fixes = []
            self._state = RecorderState.idle
            snapshot = self._snapshot_locked()

        if ticker is not None:
            ticker.stop()
        logger.info(
            "session_stopped",
            duration_sec=draft.duration_sec,
            distance_km=round(draft.distance_km, 3),
            fixes=fix_count,
        )
        self._notify(snapshot)
        return draft

    def teardown(self) -> None:
        """Release the subscription and timer, discarding any unstopped session."""
        with self._lock:
            discarded = self._state is RecorderState.recording
            ticker = self._release_locked()
            self._fixes = []
            self._state = RecorderState.idle
            snapshot = self._snapshot_locked()

        if ticker is not None:
            ticker.stop()
        if discarded:
            logger.info("session_discarded", elapsed_seconds=snapshot.elapsed_seconds)
            self._notify(snapshot)

    def _accepts_locked(self, generation: int | None) -> bool:
        if self._state is not RecorderState.recording:
            return False
        return generation is None or generation == self._generation

    def _release_locked(self) -> Ticker | None:
        if self._subscription is not None:
            self._source.unsubscribe(self._subscription)
            self._subscription = None
        ticker, self._ticker = self._ticker, None
        return ticker

    def _snapshot_locked(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            elapsed_seconds=self._elapsed_seconds,
            distance_km=self._distance_km,
            avg_speed_kmh=average_speed_kmh(self._distance_km, self._elapsed_seconds),
            fix_count=len(self._fixes),
        )

    def _notify(self, snapshot: SessionSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("snapshot_listener_failed", state=snapshot.state.value)

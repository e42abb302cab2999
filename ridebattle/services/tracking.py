"""Command and query surface the presentation layer talks to."""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Sequence

import structlog

from ridebattle.core.config import LeaderboardPoolEntry, Settings
from ridebattle.core.errors import CorruptState, PersistenceFailed
from ridebattle.core.time_utils import resolve_timezone
from ridebattle.repositories.ride import RideRepository
from ridebattle.schemas.ride import (
    ChartPoint,
    LeaderboardResult,
    Ride,
    RideStats,
    SessionSnapshot,
    StopResult,
)
from ridebattle.services.leaderboard import rank_leaderboard
from ridebattle.services.recorder import RideRecorder, SnapshotListener
from ridebattle.services.statistics import compute_series, compute_summary

logger = structlog.get_logger(__name__)


class RideTrackingService:
    def __init__(
        self,
        recorder: RideRecorder,
        repository: RideRepository,
        *,
        leaderboard_pool: Sequence[LeaderboardPoolEntry] = (),
        self_name: str = "You",
        chart_locale: str = "en",
        tz: tzinfo | None = None,
    ) -> None:
        self._recorder = recorder
        self._repository = repository
        self._leaderboard_pool = list(leaderboard_pool)
        self._self_name = self_name
        self._chart_locale = chart_locale
        self._tz = tz

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        recorder: RideRecorder,
        repository: RideRepository,
    ) -> RideTrackingService:
        return cls(
            recorder,
            repository,
            leaderboard_pool=settings.leaderboard_pool,
            self_name=settings.self_display_name,
            chart_locale=settings.chart_locale,
            tz=resolve_timezone(settings.timezone),
        )

    def load(self) -> list[Ride]:
        """Load stored rides, starting from an empty history when the blob is corrupt."""
        try:
            return self._repository.load()
        except CorruptState:
            logger.warning("ride_history_reset_after_corruption")
            return []

    def subscribe(self, listener: SnapshotListener) -> None:
        self._recorder.add_listener(listener)

    def unsubscribe(self, listener: SnapshotListener) -> None:
        self._recorder.remove_listener(listener)

    def snapshot(self) -> SessionSnapshot:
        return self._recorder.snapshot()

    def start_session(self) -> SessionSnapshot:
        return self._recorder.start()

    def stop_session(self) -> StopResult:
        draft = self._recorder.stop()
        try:
            ride = self._repository.append(draft)
        except PersistenceFailed as exc:
            assert exc.ride is not None
            return StopResult(ride=exc.ride, persisted=False, warning=exc.message)
        return StopResult(ride=ride)

    def rides(self) -> list[Ride]:
        return self._repository.list()

    def latest_ride(self) -> Ride | None:
        rides = self._repository.list()
        return rides[0] if rides else None

    def remove_ride(self, ride_id: str) -> bool:
        return self._repository.remove(ride_id)

    def summary(self) -> RideStats:
        return compute_summary(self._repository.list())

    def series(self, period_days: int, reference_day: date | None = None) -> list[ChartPoint]:
        if reference_day is None:
            reference_day = datetime.now(tz=self._tz).date()
        return compute_series(
            self._repository.list(),
            period_days,
            reference_day,
            locale=self._chart_locale,
            tz=self._tz,
        )

    def leaderboard(self) -> LeaderboardResult:
        stats = self.summary()
        return rank_leaderboard(
            self._leaderboard_pool,
            stats.total_distance_km,
            self_name=self._self_name,
            rides_count=stats.rides_count,
        )

    def shutdown(self) -> None:
        self._recorder.teardown()

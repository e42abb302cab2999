from __future__ import annotations

from functools import partial
from typing import Callable

from ridebattle.core.config import Settings
from ridebattle.db.session import init_engine
from ridebattle.repositories.key_value import KeyValueStore, SqlKeyValueStore
from ridebattle.repositories.ride import RideRepository
from ridebattle.services.position_source import PositionSource, PushPositionSource
from ridebattle.services.recorder import RideRecorder
from ridebattle.services.ticker import IntervalTicker, Ticker
from ridebattle.services.tracking import RideTrackingService


def create_tracking_service(
    settings: Settings,
    *,
    store: KeyValueStore | None = None,
    position_source: PositionSource | None = None,
    ticker_factory: Callable[[], Ticker] | None = None,
) -> RideTrackingService:
    if store is None:
        store = SqlKeyValueStore(init_engine(settings))
    if position_source is None:
        position_source = PushPositionSource()
    if ticker_factory is None:
        ticker_factory = partial(IntervalTicker, settings.tick_interval_seconds)

    recorder = RideRecorder(position_source, ticker_factory=ticker_factory)
    repository = RideRepository(store, key=settings.rides_storage_key)
    service = RideTrackingService.from_settings(settings, recorder, repository)
    service.load()
    return service

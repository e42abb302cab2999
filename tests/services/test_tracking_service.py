from datetime import date, datetime, timezone

import pytest

from ridebattle.core.config import LeaderboardPoolEntry, Settings
from ridebattle.core.errors import InvalidState
from ridebattle.repositories.key_value import InMemoryKeyValueStore
from ridebattle.repositories.ride import DEFAULT_STORAGE_KEY, RideRepository
from ridebattle.services.recorder import RideRecorder
from ridebattle.services.tracking import RideTrackingService
from ridebattle.services.tracking_factory import create_tracking_service

STOPPED_AT = datetime(2025, 6, 4, 9, 0, tzinfo=timezone.utc)


class FailingStore(InMemoryKeyValueStore):
    def set(self, key: str, value: bytes) -> None:
        raise OSError("read-only filesystem")


def _build(position_source, tickers, store=None) -> RideTrackingService:
    recorder = RideRecorder(position_source, ticker_factory=tickers, clock=lambda: STOPPED_AT)
    repository = RideRepository(store or InMemoryKeyValueStore())
    return RideTrackingService(
        recorder,
        repository,
        leaderboard_pool=[LeaderboardPoolEntry(name="Fast Fox", distance_km=120)],
        tz=timezone.utc,
    )


def _record(service, position_source, tickers, make_fix, seconds: int = 1800) -> None:
    service.start_session()
    position_source.push(make_fix(52.52, 13.405))
    position_source.push(make_fix(52.52, 13.505))
    tickers.last.fire(seconds)


def test_stop_session_appends_ride(position_source, tickers, make_fix):
    service = _build(position_source, tickers)
    _record(service, position_source, tickers, make_fix)

    result = service.stop_session()

    assert result.persisted
    assert result.warning is None
    assert service.rides() == [result.ride]
    assert service.latest_ride() == result.ride
    assert result.ride.duration_sec == 1800
    assert result.ride.date == STOPPED_AT


def test_persistence_failure_becomes_warning(position_source, tickers, make_fix):
    service = _build(position_source, tickers, store=FailingStore())
    _record(service, position_source, tickers, make_fix)

    result = service.stop_session()

    assert not result.persisted
    assert result.warning
    assert service.rides() == [result.ride]


def test_summary_series_and_leaderboard_follow_rides(position_source, tickers, make_fix):
    service = _build(position_source, tickers)
    _record(service, position_source, tickers, make_fix)
    ride = service.stop_session().ride

    stats = service.summary()
    series = service.series(7, date(2025, 6, 4))
    board = service.leaderboard()

    assert stats.rides_count == 1
    assert stats.total_distance_km == pytest.approx(ride.distance_km)
    assert series[-1].value == pytest.approx(ride.distance_km)
    assert board.self_rank == 2
    assert board.rides_count == 1
    assert board.self_distance_km == round(ride.distance_km, 1)


def test_stop_without_session_is_invalid(position_source, tickers):
    service = _build(position_source, tickers)

    with pytest.raises(InvalidState):
        service.stop_session()
    assert service.rides() == []


def test_listeners_follow_the_recorder(position_source, tickers):
    service = _build(position_source, tickers)
    received = []
    service.subscribe(received.append)

    service.start_session()
    tickers.last.fire(2)
    service.unsubscribe(received.append)
    tickers.last.fire()

    assert [snapshot.elapsed_seconds for snapshot in received] == [0, 1, 2]
    assert service.snapshot().elapsed_seconds == 3


def test_corrupt_history_is_reset_on_load(position_source, tickers):
    store = InMemoryKeyValueStore({DEFAULT_STORAGE_KEY: b"garbage"})
    service = _build(position_source, tickers, store=store)

    assert service.load() == []
    assert store.get(DEFAULT_STORAGE_KEY) == b"garbage"


def test_shutdown_discards_running_session(position_source, tickers):
    service = _build(position_source, tickers)
    service.start_session()

    service.shutdown()

    assert position_source.subscriber_count == 0
    assert service.rides() == []


def test_factory_wires_settings(position_source, tickers):
    settings = Settings(database_url="sqlite+pysqlite:///:memory:")
    store = InMemoryKeyValueStore()

    service = create_tracking_service(
        settings,
        store=store,
        position_source=position_source,
        ticker_factory=tickers,
    )
    service.start_session()
    tickers.last.fire(60)
    result = service.stop_session()

    assert result.persisted
    assert store.get(settings.rides_storage_key) is not None
    assert service.leaderboard().entries[0].name == "Fast Fox"


def test_failing_listener_does_not_block_persisting(position_source, tickers, make_fix):
    service = _build(position_source, tickers)

    def _broken(snapshot):
        raise RuntimeError("screen gone")

    service.subscribe(_broken)
    _record(service, position_source, tickers, make_fix)

    result = service.stop_session()

    assert result.persisted
    assert service.rides() == [result.ride]

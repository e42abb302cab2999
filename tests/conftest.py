from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Callable

import pytest

from ridebattle.core.config import get_settings
from ridebattle.schemas.ride import Fix
from ridebattle.services.position_source import PositionSourceError, PushPositionSource, Subscription


@pytest.fixture(autouse=True)
def _env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class ManualTicker:
    """Ticker driven by the test instead of a thread."""

    def __init__(self) -> None:
        self.callback: Callable[[], None] | None = None
        self.started = False
        self.stopped = False

    def start(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def fire(self, times: int = 1) -> None:
        assert self.callback is not None
        for _ in range(times):
            self.callback()


class TickerFactory:
    def __init__(self) -> None:
        self.created: list[ManualTicker] = []

    def __call__(self) -> ManualTicker:
        ticker = ManualTicker()
        self.created.append(ticker)
        return ticker

    @property
    def last(self) -> ManualTicker:
        return self.created[-1]


class StubPositionSource(PushPositionSource):
    def __init__(self, *, authorized: bool = True, fail_subscribe: bool = False) -> None:
        super().__init__(authorized=authorized)
        self.fail_subscribe = fail_subscribe
        self.unsubscribed: list[Subscription] = []
        self.callbacks: list = []

    def subscribe(self, callback):  # type: ignore[override]
        if self.fail_subscribe:
            raise PositionSourceError("GPS hardware unavailable")
        self.callbacks.append(callback)
        return super().subscribe(callback)

    def unsubscribe(self, subscription: Subscription) -> None:
        self.unsubscribed.append(subscription)
        super().unsubscribe(subscription)


@pytest.fixture()
def position_source() -> StubPositionSource:
    return StubPositionSource()


@pytest.fixture()
def tickers() -> TickerFactory:
    return TickerFactory()


@pytest.fixture()
def make_fix() -> Callable[..., Fix]:
    def _build(latitude: float, longitude: float, second: int = 0) -> Fix:
        return Fix(
            latitude=latitude,
            longitude=longitude,
            timestamp=datetime(2025, 6, 1, 8, 0, second, tzinfo=timezone.utc),
        )

    return _build

from __future__ import annotations

import threading
from typing import Callable, Protocol

import structlog

logger = structlog.get_logger(__name__)


class Ticker(Protocol):
    def start(self, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class IntervalTicker:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread.

    Missed intervals are not replayed: if the thread is starved the lost ticks
    are simply not counted.
    """

    def __init__(self, interval: float = 1.0) -> None:
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, callback: Callable[[], None]) -> None:
        if self._thread is not None:
            raise RuntimeError("Ticker already started")
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            args=(callback,),
            name="ride-ticker",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        thread = self._thread
        self._thread = None
        self._stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._interval * 2)

    def _run(self, callback: Callable[[], None]) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                callback()
            except Exception:  # pragma: no cover - keep ticking on listener bugs
                logger.exception("ticker_callback_failed")

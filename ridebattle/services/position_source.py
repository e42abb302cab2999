"""Position source contract and the in-process source fed by the HTTP layer."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from typing import Callable, Protocol

import structlog

from ridebattle.schemas.ride import Fix

logger = structlog.get_logger(__name__)

FixCallback = Callable[[Fix], None]


class PositionSourceError(Exception):
    """Raised when a position source cannot deliver fixes."""


@dataclass(frozen=True, slots=True)
class Subscription:
    handle: int


class PositionSource(Protocol):
    def request_authorization(self) -> bool: ...

    def subscribe(self, callback: FixCallback) -> Subscription: ...

    def unsubscribe(self, subscription: Subscription) -> None: ...


@dataclass
class PushPositionSource:
    """Fans out fixes pushed by a client to every live subscriber.

    Authorization is decided by the client device, so the source grants it unless
    configured otherwise.
    """

    authorized: bool = True
    _callbacks: dict[int, FixCallback] = field(default_factory=dict, init=False)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1), init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def request_authorization(self) -> bool:
        return self.authorized

    def subscribe(self, callback: FixCallback) -> Subscription:
        with self._lock:
            subscription = Subscription(handle=next(self._ids))
            self._callbacks[subscription.handle] = callback
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._callbacks.pop(subscription.handle, None)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def push(self, fix: Fix) -> int:
        """Deliver a fix to current subscribers and return how many received it."""
        with self._lock:
            callbacks = list(self._callbacks.values())
        if not callbacks:
            logger.debug("fix_dropped_without_subscriber", latitude=fix.latitude, longitude=fix.longitude)
        for callback in callbacks:
            callback(fix)
        return len(callbacks)

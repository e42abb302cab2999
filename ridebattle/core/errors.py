"""Error kinds raised by the ride recording core.

None of them is fatal: callers recover at the session or operation boundary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ridebattle.schemas.ride import Ride


class RideBattleError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class PermissionDenied(RideBattleError):
    """The rider declined location authorization; no session was started."""

    status_code = 403


class TrackingUnavailable(RideBattleError):
    """The position source could not be subscribed to; no session was started."""

    status_code = 503


class InvalidState(RideBattleError):
    """A command was issued in a state that does not accept it."""

    status_code = 409


class CorruptState(RideBattleError):
    """The persisted ride blob could not be parsed.

    The repository falls back to an empty collection and leaves the stored bytes
    in place for inspection.
    """

    status_code = 500


class PersistenceFailed(RideBattleError):
    """Writing the ride collection failed; the in-memory append was kept."""

    status_code = 507

    def __init__(self, message: str, ride: Ride | None = None) -> None:
        super().__init__(message)
        self.ride = ride

from __future__ import annotations

import threading

from fastapi import Depends, Request

from ridebattle.core.config import Settings, get_settings
from ridebattle.services.position_source import PushPositionSource
from ridebattle.services.tracking import RideTrackingService
from ridebattle.services.tracking_factory import create_tracking_service

_BUILD_LOCK = threading.Lock()


def get_position_source(request: Request) -> PushPositionSource:
    state = request.app.state
    with _BUILD_LOCK:
        source = getattr(state, "position_source", None)
        if source is None:
            source = PushPositionSource()
            state.position_source = source
        return source


def get_tracking_service(
    request: Request,
    settings: Settings = Depends(get_settings),
    position_source: PushPositionSource = Depends(get_position_source),
) -> RideTrackingService:
    state = request.app.state
    with _BUILD_LOCK:
        service = getattr(state, "tracking_service", None)
        if service is None:
            service = create_tracking_service(settings, position_source=position_source)
            state.tracking_service = service
        return service

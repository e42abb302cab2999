from fastapi import APIRouter, Depends, HTTPException, status

from ridebattle.api.dependencies.tracking import get_position_source, get_tracking_service
from ridebattle.core.errors import InvalidState, PermissionDenied, TrackingUnavailable
from ridebattle.schemas.ride import Fix, SessionSnapshot, StopResult
from ridebattle.services.position_source import PushPositionSource
from ridebattle.services.tracking import RideTrackingService

router = APIRouter(prefix="/v1/session", tags=["session"])


@router.get("", response_model=SessionSnapshot)
def read_session(service: RideTrackingService = Depends(get_tracking_service)) -> SessionSnapshot:
    return service.snapshot()


@router.post("/start", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
def start_session(service: RideTrackingService = Depends(get_tracking_service)) -> SessionSnapshot:
    try:
        return service.start_session()
    except PermissionDenied as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message) from exc
    except TrackingUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message) from exc
    except InvalidState as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message) from exc


@router.post("/fixes", response_model=SessionSnapshot, status_code=status.HTTP_202_ACCEPTED)
def push_fix(
    fix: Fix,
    service: RideTrackingService = Depends(get_tracking_service),
    position_source: PushPositionSource = Depends(get_position_source),
) -> SessionSnapshot:
    position_source.push(fix)
    return service.snapshot()


@router.post("/stop", response_model=StopResult)
def stop_session(service: RideTrackingService = Depends(get_tracking_service)) -> StopResult:
    try:
        return service.stop_session()
    except InvalidState as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message) from exc

from fastapi import APIRouter, Depends, HTTPException, status

from ridebattle.api.dependencies.tracking import get_tracking_service
from ridebattle.core.errors import PersistenceFailed
from ridebattle.core.time_utils import format_duration
from ridebattle.schemas.ride import Ride, RideRead
from ridebattle.services.tracking import RideTrackingService

router = APIRouter(prefix="/v1/rides", tags=["rides"])


def _ride_to_response(ride: Ride) -> RideRead:
    return RideRead(**ride.model_dump(), duration_display=format_duration(ride.duration_sec))


@router.get("", response_model=list[RideRead])
def list_rides(service: RideTrackingService = Depends(get_tracking_service)) -> list[RideRead]:
    return [_ride_to_response(ride) for ride in service.rides()]


@router.get("/latest", response_model=RideRead)
def read_latest_ride(service: RideTrackingService = Depends(get_tracking_service)) -> RideRead:
    ride = service.latest_ride()
    if ride is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No rides recorded yet")
    return _ride_to_response(ride)


@router.delete("/{ride_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ride(ride_id: str, service: RideTrackingService = Depends(get_tracking_service)) -> None:
    try:
        removed = service.remove_ride(ride_id)
    except PersistenceFailed as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ride not found")

from datetime import date

from fastapi import APIRouter, Depends, Query

from ridebattle.api.dependencies.tracking import get_tracking_service
from ridebattle.schemas.ride import ChartPeriod, ChartPoint, LeaderboardResult, RideStats
from ridebattle.services.tracking import RideTrackingService

router = APIRouter(prefix="/v1", tags=["stats"])


@router.get("/stats/summary", response_model=RideStats)
def read_summary(service: RideTrackingService = Depends(get_tracking_service)) -> RideStats:
    return service.summary()


@router.get("/stats/series", response_model=list[ChartPoint])
def read_series(
    period: ChartPeriod = Query(default=ChartPeriod.week),
    reference_day: date | None = Query(default=None),
    service: RideTrackingService = Depends(get_tracking_service),
) -> list[ChartPoint]:
    return service.series(period.days, reference_day)


@router.get("/leaderboard", response_model=LeaderboardResult)
def read_leaderboard(service: RideTrackingService = Depends(get_tracking_service)) -> LeaderboardResult:
    return service.leaderboard()

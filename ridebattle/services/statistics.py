from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Sequence

from ridebattle.schemas.ride import ChartPoint, Ride, RideStats

SUPPORTED_PERIOD_DAYS = (7, 30, 90, 180, 365)

# Indexed by date.weekday(), Monday first.
WEEKDAY_ABBREVIATIONS: dict[str, tuple[str, ...]] = {
    "en": ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"),
    "ru": ("Пн", "Вт", "Ср", "Чт", "Пт", "Сб", "Вс"),
}


def compute_summary(rides: Sequence[Ride]) -> RideStats:
    if not rides:
        return RideStats()

    total_distance = sum(ride.distance_km for ride in rides)
    total_duration = sum(ride.duration_sec for ride in rides)
    avg_speed = total_distance / (total_duration / 3600) if total_duration > 0 else 0.0

    return RideStats(
        total_distance_km=total_distance,
        total_duration_sec=total_duration,
        rides_count=len(rides),
        avg_speed_kmh=avg_speed,
        max_distance_km=max(ride.distance_km for ride in rides),
        max_speed_kmh=max(ride.avg_speed_kmh for ride in rides),
    )


def to_local_naive(value: datetime, tz: tzinfo | None = None) -> datetime:
    """Wall-clock time of ``value`` in ``tz`` (host timezone when None), tzinfo dropped.

    Naive datetimes are taken to already be local.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(tz).replace(tzinfo=None)


def _bucket_label(day: date, period_days: int, locale: str) -> str:
    if period_days == 7:
        names = WEEKDAY_ABBREVIATIONS.get(locale, WEEKDAY_ABBREVIATIONS["en"])
        return names[day.weekday()]
    return f"{day.day}/{day.month}"


def compute_series(
    rides: Sequence[Ride],
    period_days: int,
    reference_day: date,
    *,
    locale: str = "en",
    tz: tzinfo | None = None,
) -> list[ChartPoint]:
    """Daily distance totals for the ``period_days`` days ending on ``reference_day``.

    Buckets run oldest first and cover ``[midnight, midnight + 24h)`` in local
    naive time, so a ride exactly at midnight lands in the day that starts then.
    """
    if period_days not in SUPPORTED_PERIOD_DAYS:
        raise ValueError(f"Unsupported period: {period_days} days")

    first_day = reference_day - timedelta(days=period_days - 1)
    ride_times = [(to_local_naive(ride.date, tz), ride.distance_km) for ride in rides]

    points: list[ChartPoint] = []
    for index in range(period_days):
        day = first_day + timedelta(days=index)
        bucket_start = datetime.combine(day, time.min)
        bucket_end = bucket_start + timedelta(hours=24)
        total = 0.0
        for ride_time, distance in ride_times:
            if bucket_start <= ride_time < bucket_end:
                total += distance
        points.append(
            ChartPoint(
                bucket_index=index,
                day=day,
                value=total,
                label=_bucket_label(day, period_days, locale),
            )
        )
    return points

from datetime import date, datetime, timedelta, timezone

import pytest

from ridebattle.schemas.ride import ChartPeriod, Ride
from ridebattle.services.statistics import compute_series, compute_summary, to_local_naive


def _ride(ride_id: str, when: datetime, distance_km: float, duration_sec: int = 3600) -> Ride:
    speed = distance_km / (duration_sec / 3600) if duration_sec else 0.0
    return Ride(
        id=ride_id,
        date=when,
        duration_sec=duration_sec,
        distance_km=distance_km,
        avg_speed_kmh=speed,
    )


def test_summary_of_empty_collection_is_zero():
    stats = compute_summary([])

    assert stats.total_distance_km == 0
    assert stats.total_duration_sec == 0
    assert stats.rides_count == 0
    assert stats.avg_speed_kmh == 0
    assert stats.max_distance_km == 0
    assert stats.max_speed_kmh == 0


def test_summary_totals_and_maxima():
    rides = [
        _ride("a", datetime(2025, 6, 2, 8), 30.0, 3600),
        _ride("b", datetime(2025, 6, 1, 8), 10.0, 1800),
    ]

    stats = compute_summary(rides)

    assert stats.total_distance_km == pytest.approx(40.0)
    assert stats.total_duration_sec == 5400
    assert stats.rides_count == 2
    assert stats.avg_speed_kmh == pytest.approx(40.0 / 1.5)
    assert stats.max_distance_km == pytest.approx(30.0)
    assert stats.max_speed_kmh == pytest.approx(30.0)


def test_summary_with_zero_total_duration():
    rides = [_ride("a", datetime(2025, 6, 2, 8), 1.5, 0)]

    stats = compute_summary(rides)

    assert stats.total_distance_km == pytest.approx(1.5)
    assert stats.avg_speed_kmh == 0.0
    assert stats.max_speed_kmh == 0.0


def test_week_series_buckets_and_labels():
    today = date(2025, 6, 4)  # Wednesday
    rides = [
        _ride("a", datetime(2025, 6, 4, 7, 30), 12.0),
        _ride("b", datetime(2025, 6, 4, 18, 0), 3.0),
        _ride("c", datetime(2025, 5, 29, 12, 0), 5.0),
        _ride("d", datetime(2025, 5, 28, 23, 59), 100.0),  # one day too old
        _ride("e", datetime(2025, 6, 5, 0, 0), 100.0),  # tomorrow
    ]

    series = compute_series(rides, 7, today)

    assert len(series) == 7
    assert [point.bucket_index for point in series] == list(range(7))
    assert series[0].day == date(2025, 5, 29)
    assert series[-1].day == today
    assert [point.label for point in series] == ["Thu", "Fri", "Sat", "Sun", "Mon", "Tue", "Wed"]
    assert series[0].value == pytest.approx(5.0)
    assert series[-1].value == pytest.approx(15.0)
    assert sum(point.value for point in series) == pytest.approx(20.0)


def test_ride_at_midnight_belongs_to_the_day_it_starts():
    rides = [_ride("a", datetime(2025, 6, 4, 0, 0), 8.0)]

    series = compute_series(rides, 7, date(2025, 6, 4))

    assert series[-1].value == pytest.approx(8.0)
    assert series[-2].value == 0.0


def test_russian_weekday_labels():
    series = compute_series([], 7, date(2025, 6, 1), locale="ru")  # Sunday

    assert series[-1].label == "Вс"
    assert series[0].label == "Пн"


def test_longer_periods_use_day_month_labels():
    series = compute_series([], ChartPeriod.month.days, date(2025, 3, 2))

    assert len(series) == 30
    assert series[-1].label == "2/3"
    assert series[0].label == "31/1"


@pytest.mark.parametrize("period", list(ChartPeriod))
def test_supported_periods_have_expected_length(period):
    assert len(compute_series([], period.days, date(2025, 1, 1))) == period.days


def test_unsupported_period_is_rejected():
    with pytest.raises(ValueError):
        compute_series([], 14, date(2025, 1, 1))


def test_aware_dates_are_bucketed_in_the_requested_timezone():
    plus_three = timezone(timedelta(hours=3))
    # 22:30 UTC on 3 June is already 4 June at UTC+3
    rides = [_ride("a", datetime(2025, 6, 3, 22, 30, tzinfo=timezone.utc), 6.0)]

    in_utc = compute_series(rides, 7, date(2025, 6, 4), tz=timezone.utc)
    shifted = compute_series(rides, 7, date(2025, 6, 4), tz=plus_three)

    assert in_utc[-2].value == pytest.approx(6.0)
    assert shifted[-1].value == pytest.approx(6.0)


def test_series_is_repeatable():
    rides = [_ride("a", datetime(2025, 6, 4, 9), 0.1), _ride("b", datetime(2025, 6, 4, 10), 0.2)]

    first = compute_series(rides, 30, date(2025, 6, 4))
    second = compute_series(rides, 30, date(2025, 6, 4))

    assert first == second


def test_to_local_naive_keeps_naive_values():
    value = datetime(2025, 6, 4, 12, 0)
    assert to_local_naive(value) is value

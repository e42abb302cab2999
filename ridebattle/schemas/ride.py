from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Fix(BaseModel):
    """One position sample from the position source."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    timestamp: datetime


class RideDraft(BaseModel):
    """A finished session before the repository assigns it an identifier."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: datetime
    duration_sec: int = Field(ge=0, alias="durationSec")
    distance_km: float = Field(ge=0, alias="distanceKm")
    avg_speed_kmh: float = Field(ge=0, alias="avgSpeedKmh")

    @model_validator(mode="before")
    @classmethod
    def _zero_speed_without_duration(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        duration = data.get("durationSec", data.get("duration_sec"))
        if duration == 0:
            data = dict(data)
            data.pop("avg_speed_kmh", None)
            data["avgSpeedKmh"] = 0.0
        return data


class Ride(RideDraft):
    id: str

    @classmethod
    def from_draft(cls, ride_id: str, draft: RideDraft) -> Ride:
        return cls(id=ride_id, **draft.model_dump())


class RideStats(BaseModel):
    total_distance_km: float = 0.0
    total_duration_sec: int = 0
    rides_count: int = 0
    avg_speed_kmh: float = 0.0
    max_distance_km: float = 0.0
    max_speed_kmh: float = 0.0


class ChartPeriod(str, Enum):
    week = "7D"
    month = "1M"
    quarter = "3M"
    half_year = "6M"
    year = "1Y"

    @property
    def days(self) -> int:
        return _PERIOD_DAYS[self]


_PERIOD_DAYS = {
    ChartPeriod.week: 7,
    ChartPeriod.month: 30,
    ChartPeriod.quarter: 90,
    ChartPeriod.half_year: 180,
    ChartPeriod.year: 365,
}


class ChartPoint(BaseModel):
    bucket_index: int
    day: date
    value: float
    label: str


class LeaderboardEntry(BaseModel):
    id: str
    name: str
    distance_km: float
    is_self: bool = False


class LeaderboardResult(BaseModel):
    entries: List[LeaderboardEntry] = Field(default_factory=list)
    self_rank: int | None = None
    self_distance_km: float | None = None
    rides_count: int = 0


class RecorderState(str, Enum):
    idle = "idle"
    recording = "recording"
    stopped = "stopped"


class SessionSnapshot(BaseModel):
    state: RecorderState
    elapsed_seconds: int = 0
    distance_km: float = 0.0
    avg_speed_kmh: float = 0.0
    fix_count: int = 0


class StopResult(BaseModel):
    ride: Ride
    persisted: bool = True
    warning: str | None = None


class RideRead(Ride):
    duration_display: str = Field(alias="durationDisplay")

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LeaderboardPoolEntry(BaseModel):
    name: str
    distance_km: float


def _demo_leaderboard_pool() -> list[LeaderboardPoolEntry]:
    return [
        LeaderboardPoolEntry(name="Fast Fox", distance_km=120),
        LeaderboardPoolEntry(name="Night Rider", distance_km=95),
        LeaderboardPoolEntry(name="Urban Rocket", distance_km=68),
        LeaderboardPoolEntry(name="Gravel Ghost", distance_km=42),
    ]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, case_sensitive=False)

    app_env: Literal["development", "test", "production"] = "development"
    database_url: str = "sqlite+pysqlite:///./ridebattle.db"

    rides_storage_key: str = "RIDE_BATTLE_RIDES"
    tick_interval_seconds: float = Field(default=1.0, gt=0)

    # "local" uses the host timezone when bucketing rides into calendar days
    timezone: str = "local"
    chart_locale: Literal["en", "ru"] = "en"

    leaderboard_pool: list[LeaderboardPoolEntry] = Field(default_factory=_demo_leaderboard_pool)
    self_display_name: str = "You"

    log_level: str = "INFO"
    log_json: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()

from __future__ import annotations

from typing import Iterable, Sequence

from ridebattle.core.config import LeaderboardPoolEntry
from ridebattle.schemas.ride import LeaderboardEntry, LeaderboardResult

SELF_ENTRY_ID = "you"


def rank_entries(entries: Iterable[LeaderboardEntry]) -> tuple[list[LeaderboardEntry], int | None]:
    """Sort by distance, longest first, keeping input order for ties.

    Returns the ranked entries and the 1-based rank of the self entry, or None
    when no entry is flagged as self.
    """
    ranked = sorted(entries, key=lambda entry: entry.distance_km, reverse=True)
    self_rank = next((index + 1 for index, entry in enumerate(ranked) if entry.is_self), None)
    return ranked, self_rank


def rank_leaderboard(
    pool: Sequence[LeaderboardPoolEntry],
    self_distance_km: float,
    *,
    self_name: str = "You",
    rides_count: int = 0,
) -> LeaderboardResult:
    rounded = round(self_distance_km, 1)
    entries = [
        LeaderboardEntry(id=str(index + 1), name=member.name, distance_km=member.distance_km)
        for index, member in enumerate(pool)
    ]
    entries.append(LeaderboardEntry(id=SELF_ENTRY_ID, name=self_name, distance_km=rounded, is_self=True))

    ranked, self_rank = rank_entries(entries)
    return LeaderboardResult(
        entries=ranked,
        self_rank=self_rank,
        self_distance_km=rounded,
        rides_count=rides_count,
    )

from __future__ import annotations

from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def format_duration(total_seconds: int) -> str:
    """Format seconds as ``HH:MM:SS``, or ``MM:SS`` under an hour.

    Example: 2732 -> '45:32', 3725 -> '01:02:05'
    """
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def resolve_timezone(tz_name: str | None) -> tzinfo | None:
    """Map a configured timezone name to a tzinfo.

    ``None`` or ``"local"`` return None, meaning the host timezone.
    """
    if not tz_name or tz_name == "local":
        return None
    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError as exc:
        raise ValueError(f"Unknown timezone: {tz_name}") from exc

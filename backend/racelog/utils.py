from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo


def format_duration_ms(ms: Optional[int]) -> Optional[str]:
    """Format a millisecond duration as ``HH:MM:SS.ff``.

    Hundredths are truncated from the millisecond remainder, so 5061 ms
    becomes ``00:00:05.06``.
    """
    if ms is None:
        return None
    ms = int(ms)
    hh = ms // 3_600_000
    mm = (ms % 3_600_000) // 60_000
    ss = (ms % 60_000) // 1000
    ff = (ms % 1000) // 10
    return f"{hh:02d}:{mm:02d}:{ss:02d}.{ff:02d}"


def local_now(tz_name: str) -> datetime:
    # readers write naive local time, so compare against the same clock
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def day_window(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def elapsed_ms(start: datetime, end: datetime) -> int:
    return (end - start) // timedelta(milliseconds=1)

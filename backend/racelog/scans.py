from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from .race_config import ConfigError
from .utils import elapsed_ms


@dataclass(frozen=True)
class ScanEvent:
    tag_id: str
    timestamp: datetime


@dataclass
class ScanSummary:
    scan_count: int
    # one slot per configured round; None until the round is reached
    rounds: list[Optional[int]] = field(default_factory=list)
    total_ms: Optional[int] = None

    @property
    def rounds_done(self) -> int:
        return sum(1 for r in self.rounds if r is not None)


def aggregate_scans(events: Iterable[ScanEvent], required_scans: int) -> ScanSummary:
    """Summarise one tag's scans for a day.

    Scans past ``required_scans`` are dropped, so extra passes of the
    sensor never add rounds or time. Equal timestamps keep their input
    order.
    """
    if required_scans < 2:
        raise ConfigError(f"required_scans must be at least 2, got {required_scans}")

    ordered = sorted(events, key=lambda ev: ev.timestamp)
    kept = ordered[:required_scans]

    rounds: list[Optional[int]] = [None] * (required_scans - 1)
    for n in range(1, len(kept)):
        rounds[n - 1] = elapsed_ms(kept[n - 1].timestamp, kept[n].timestamp)

    total = None
    if len(kept) >= 2:
        total = sum(r for r in rounds if r is not None)
    return ScanSummary(scan_count=len(kept), rounds=rounds, total_ms=total)


def span_ms(events: Iterable[ScanEvent]) -> Optional[int]:
    """Time from the first to the last scan, ignoring any cap."""
    stamps = sorted(ev.timestamp for ev in events)
    if len(stamps) < 2:
        return None
    return elapsed_ms(stamps[0], stamps[-1])

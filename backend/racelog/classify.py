from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from .race_config import RaceConfig
from .scans import ScanSummary

DNS = "DNS"
INCOMPLETE = "incomplete"
COMPLETED = "completed"


class Band(Protocol):
    min_seconds: int
    max_seconds: int
    marks: int


@dataclass(frozen=True)
class Classification:
    status: str  # DNS | incomplete | completed
    # only set for completed runners
    total_seconds: Optional[int] = None


def classify(summary: ScanSummary, config: RaceConfig) -> Classification:
    if summary.scan_count == 0:
        return Classification(status=DNS)
    if summary.scan_count >= config.required_scans:
        return Classification(status=COMPLETED, total_seconds=summary.total_ms // 1000)
    return Classification(status=INCOMPLETE)


def lookup_marks(criteria: Iterable[Band], total_seconds: Optional[int]) -> int:
    """Marks of the band containing ``total_seconds``; 0 outside every band."""
    if total_seconds is None:
        return 0
    for band in sorted(criteria, key=lambda b: b.min_seconds):
        if band.min_seconds <= total_seconds <= band.max_seconds:
            return band.marks
    return 0


def marks_for(classification: Classification, criteria: Iterable[Band]) -> int:
    if classification.status != COMPLETED:
        return 0
    return lookup_marks(criteria, classification.total_seconds)

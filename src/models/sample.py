"""
AggregateSample model for per-frame count records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Mapping, Optional, Tuple

PERSON = "person"
VEHICLE = "vehicle"


@dataclass(frozen=True)
class AggregateSample:
    """
    One timestamped count record, produced once per processed frame.

    Attributes:
        timestamp: Wall-clock time the frame cycle completed.
        counts: Detections per tracked bucket ("person", "vehicle", ...).
    """
    timestamp: datetime
    counts: Mapping[str, int] = field(default_factory=dict)

    @classmethod
    def from_counts(
        cls, counts: Mapping[str, int], timestamp: Optional[datetime] = None
    ) -> "AggregateSample":
        merged: Dict[str, int] = {PERSON: 0, VEHICLE: 0}
        merged.update(counts)
        return cls(timestamp=timestamp or datetime.now(), counts=merged)

    @property
    def time_label(self) -> str:
        """Display-precision time (HH:MM:SS)."""
        return self.timestamp.strftime("%H:%M:%S")

    @property
    def person_count(self) -> int:
        return int(self.counts.get(PERSON, 0))

    @property
    def vehicle_count(self) -> int:
        return int(self.counts.get(VEHICLE, 0))

    def to_row(self) -> Tuple[str, int, int]:
        """Tabular export row: (time, people, vehicles)."""
        return (self.time_label, self.person_count, self.vehicle_count)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "time": self.time_label,
            "counts": dict(self.counts),
        }

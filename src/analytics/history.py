"""
Bounded rolling history of aggregate samples.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, List, Tuple

from models.sample import AggregateSample

DEFAULT_CAPACITY = 30


class HistoryBuffer:
    """
    Fixed-capacity FIFO of AggregateSample in chronological order.

    Only the pipeline engine pushes, once per completed frame cycle; charting
    and export read through snapshot() / to_rows().
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be a positive integer")
        self._samples: Deque[AggregateSample] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    def __len__(self) -> int:
        return len(self._samples)

    def push(self, sample: AggregateSample) -> None:
        """Append a sample, evicting the oldest once capacity is reached."""
        self._samples.append(sample)

    def snapshot(self) -> Tuple[AggregateSample, ...]:
        """Read-only view of the current samples, oldest first."""
        return tuple(self._samples)

    def latest(self) -> AggregateSample | None:
        return self._samples[-1] if self._samples else None

    def to_rows(self) -> List[Tuple[str, int, int]]:
        """Tabular rows (time, people, vehicles) in chronological order."""
        return [s.to_row() for s in self._samples]

    def to_series(self) -> dict:
        """Chart-shaped view: parallel label/people/vehicles lists."""
        samples = self.snapshot()
        return {
            "labels": [s.time_label for s in samples],
            "people": [s.person_count for s in samples],
            "vehicles": [s.vehicle_count for s in samples],
        }

    def clear(self) -> None:
        self._samples.clear()

"""
Category filter: confidence threshold plus active category set.

FilterSettings is the mutable store shared with the control surface. The
pipeline never reads it field by field; it takes one FilterConfig snapshot per
cycle and filters against that.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Sequence

from models.detection import Detection


@dataclass(frozen=True)
class FilterConfig:
    """Immutable filter snapshot."""
    min_confidence: float = 0.5
    active_categories: FrozenSet[str] = frozenset()

    def accepts(self, detection: Detection) -> bool:
        return (
            detection.confidence >= self.min_confidence
            and detection.class_name in self.active_categories
        )

    def to_dict(self) -> dict:
        return {
            "min_confidence": self.min_confidence,
            "active_categories": sorted(self.active_categories),
        }


def apply_filter(detections: Sequence[Detection], config: FilterConfig) -> List[Detection]:
    """Keep detections passing the threshold and category set, in input order."""
    return [d for d in detections if config.accepts(d)]


def _validate_confidence(value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"min_confidence must be between 0 and 1, got {value}")
    return value


class FilterSettings:
    """Mutable filter state; hand out snapshots with snapshot()."""

    def __init__(self, min_confidence: float = 0.5, active_categories: Iterable[str] = ()):
        self._current = FilterConfig(
            min_confidence=_validate_confidence(min_confidence),
            active_categories=frozenset(active_categories),
        )

    @classmethod
    def from_defaults(cls, defaults) -> "FilterSettings":
        """Adapter: Create from models.config.FilterDefaults."""
        return cls(defaults.min_confidence, defaults.active_categories)

    def snapshot(self) -> FilterConfig:
        return self._current

    def set_min_confidence(self, value: float) -> None:
        self._current = FilterConfig(
            min_confidence=_validate_confidence(value),
            active_categories=self._current.active_categories,
        )

    def set_active_categories(self, categories: Iterable[str]) -> None:
        self._current = FilterConfig(
            min_confidence=self._current.min_confidence,
            active_categories=frozenset(categories),
        )

    def replace(self, config: FilterConfig) -> None:
        _validate_confidence(config.min_confidence)
        self._current = config

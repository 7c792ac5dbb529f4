"""
Detection models for object detection results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in frame pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels.
        height: Box height in pixels.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def from_xywh(cls, t: Sequence[float]) -> "BoundingBox":
        """Create from [x, y, width, height]."""
        return cls(x=float(t[0]), y=float(t[1]), width=float(t[2]), height=float(t[3]))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=float(x1), y=float(y1), width=float(x2 - x1), height=float(y2 - y1))


@dataclass(frozen=True)
class Detection:
    """
    A single detection from the model.

    Detections carry no identity: each frame's list is independent.

    Attributes:
        class_name: Category label (e.g. "person", "car").
        confidence: Detection confidence score (0-1).
        bbox: Bounding box in frame pixel coordinates.
    """
    class_name: str
    confidence: float
    bbox: BoundingBox

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Detection":
        """
        Adapter: Create from a {"class", "score", "bbox": [x, y, w, h]} record.
        """
        return cls(
            class_name=str(d["class"]),
            confidence=float(d["score"]),
            bbox=BoundingBox.from_xywh(d["bbox"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class": self.class_name,
            "score": self.confidence,
            "bbox": list(self.bbox.as_tuple()),
        }


def detections_from_dicts(records: Sequence[Dict[str, Any]]) -> List[Detection]:
    """Adapter: Convert a list of detection records to Detection objects."""
    return [Detection.from_dict(r) for r in records or []]

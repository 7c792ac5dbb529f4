"""
Source descriptor models.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class SourceKind(str, Enum):
    """The three frame source variants."""
    LIVE_STREAM = "live"
    FILE_VIDEO = "video"
    STATIC_IMAGE = "image"


@dataclass(frozen=True)
class SourceDescriptor:
    """
    What the control surface asks the pipeline to open.

    Attributes:
        kind: "live", "video", "image", or "file" (guess image/video from type).
        device_id: Camera index or stream URL (live only).
        path: Media file path (video/image/file).
        resolution: Requested capture resolution (live only).
        realtime: Seek video files by wall-clock position instead of
            reading every frame.
    """
    kind: str = SourceKind.LIVE_STREAM.value
    device_id: Union[int, str, None] = 0
    path: Optional[str] = None
    resolution: Optional[tuple[int, int]] = None
    realtime: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceDescriptor":
        resolution = d.get("resolution")
        if resolution:
            resolution = tuple(resolution)
        return cls(
            kind=d.get("kind", SourceKind.LIVE_STREAM.value),
            device_id=d.get("device_id", 0),
            path=d.get("path"),
            resolution=resolution,
            realtime=d.get("realtime", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "device_id": self.device_id,
            "path": self.path,
            "resolution": list(self.resolution) if self.resolution else None,
            "realtime": self.realtime,
        }

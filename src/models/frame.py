"""
FrameData: the pixels handed to the model for one cycle.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass
class FrameData:
    """
    A decoded BGR frame plus the dimensions the renderer clamps against.

    frame_index counts frames read since the source was opened (1-based).
    """
    frame: np.ndarray
    width: int
    height: int
    frame_index: int = 0

    @classmethod
    def from_numpy(cls, frame: np.ndarray, frame_index: int = 0) -> "FrameData":
        h, w = frame.shape[:2]
        return cls(frame=frame, width=w, height=h, frame_index=frame_index)

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height)"""
        return (self.width, self.height)

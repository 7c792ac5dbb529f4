"""
Detection model interface.

Models return pixel-space detections in the original frame coordinate system.
The pipeline only ever awaits detect(); how a backend gets there (thread,
accelerator, remote call) is its own business.
"""

from __future__ import annotations

from typing import List, Protocol

import numpy as np

from models.detection import Detection


class DetectionModel(Protocol):
    async def detect(self, frame: np.ndarray) -> List[Detection]:
        ...

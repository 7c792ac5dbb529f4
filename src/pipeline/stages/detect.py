"""
Detect stage: one model call per frame cycle.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from inference.backend import DetectionModel
from models.detection import Detection
from pipeline.errors import InferenceError


@dataclass
class InferenceResult:
    """Either detections or the error that replaced them."""
    detections: List[Detection] = field(default_factory=list)
    error: Optional[InferenceError] = None
    latency_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


class DetectionInvoker:
    """
    Wraps the model's async detect(). No retries: a failed call is one failed
    cycle, reported as an InferenceResult carrying the error.
    """

    def __init__(self, model: DetectionModel):
        self._model = model

    async def invoke(self, frame: np.ndarray) -> InferenceResult:
        start = time.perf_counter()
        try:
            detections = await self._model.detect(frame)
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            logging.warning(f"Inference failed after {latency_ms:.0f}ms: {e}")
            return InferenceResult(error=InferenceError(str(e)), latency_ms=latency_ms)

        return InferenceResult(
            detections=list(detections or []),
            latency_ms=(time.perf_counter() - start) * 1000,
        )

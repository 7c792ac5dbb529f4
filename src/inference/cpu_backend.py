"""
CPU inference backend.

Uses Ultralytics YOLO. predict() is blocking, so detect() runs it in a worker
thread and the event loop only suspends while it waits.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from models.config import ModelConfig
from models.detection import BoundingBox, Detection
from pipeline.errors import ModelLoadError

from .backend import DetectionModel


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    classes: Optional[Sequence[int]] = None
    class_name_overrides: Optional[Dict[int, str]] = None

    @classmethod
    def from_model_config(cls, cfg: ModelConfig) -> "CpuYoloConfig":
        return cls(
            model=cfg.model,
            conf_threshold=float(cfg.conf_threshold),
            iou_threshold=float(cfg.iou_threshold),
            classes=cfg.classes,
            class_name_overrides=cfg.class_name_overrides,
        )


class UltralyticsCpuBackend(DetectionModel):
    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install ultralytics`."
            ) from e

        self._model = YOLO(cfg.model)

    async def detect(self, frame: np.ndarray) -> List[Detection]:
        return await asyncio.to_thread(self.detect_sync, frame)

    def detect_sync(self, frame: np.ndarray) -> List[Detection]:
        results = self._model.predict(
            source=frame,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            classes=list(self.cfg.classes) if self.cfg.classes is not None else None,
            verbose=False,
        )
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = boxes.xyxy.cpu().numpy() if hasattr(boxes.xyxy, "cpu") else np.asarray(boxes.xyxy)
        conf = boxes.conf.cpu().numpy() if hasattr(boxes.conf, "cpu") else np.asarray(boxes.conf)
        cls = boxes.cls.cpu().numpy() if hasattr(boxes.cls, "cpu") else np.asarray(boxes.cls)

        out: List[Detection] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            class_id = int(k)
            class_name = (
                (self.cfg.class_name_overrides or {}).get(class_id)
                or names.get(class_id)
                or str(class_id)
            )
            out.append(
                Detection(
                    class_name=class_name,
                    confidence=float(c),
                    bbox=BoundingBox.from_xyxy(x1, y1, x2, y2),
                )
            )

        return out


def load_model(cfg: ModelConfig) -> DetectionModel:
    """
    Load the configured detection model once, before any run starts.

    Raises:
        ModelLoadError: If the backend is unknown or the model fails to load.
    """
    if cfg.backend != "ultralytics":
        raise ModelLoadError(f"Unknown model backend: {cfg.backend}")
    try:
        model = UltralyticsCpuBackend(CpuYoloConfig.from_model_config(cfg))
    except Exception as e:
        raise ModelLoadError(f"Model failed to load: {e}") from e
    logging.info(f"Model loaded: backend={cfg.backend}, model={cfg.model}")
    return model

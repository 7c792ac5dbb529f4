"""
Pipeline module for the detection overlay.

The pipeline orchestrates the full processing flow:
- Frame acquisition from frame sources
- Detection (DetectionInvoker)
- Category filtering and rendering (draw instructions + counts)
- Rolling count history
"""

from .engine import PipelineEngine, PipelineConfig, PipelineStats, create_engine_from_config
from .errors import (
    AcquisitionError,
    InferenceError,
    ModelLoadError,
    PipelineError,
    StopReason,
)
from .stages.detect import DetectionInvoker, InferenceResult
from .stages.render import FrameRenderer, RenderResult

__all__ = [
    "PipelineEngine",
    "PipelineConfig",
    "PipelineStats",
    "create_engine_from_config",
    "PipelineError",
    "AcquisitionError",
    "ModelLoadError",
    "InferenceError",
    "StopReason",
    "DetectionInvoker",
    "InferenceResult",
    "FrameRenderer",
    "RenderResult",
]

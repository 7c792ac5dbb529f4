"""
Typed models for the detection overlay application.

Use the adapter functions to convert from raw dicts (model output, YAML config).
"""

from .frame import FrameData
from .detection import Detection, BoundingBox, detections_from_dicts
from .sample import AggregateSample, PERSON, VEHICLE
from .source import SourceDescriptor, SourceKind
from .config import (
    Config,
    SourceConfig,
    ModelConfig,
    FilterDefaults,
    CountingConfig,
    PipelineSettings,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "BoundingBox",
    "detections_from_dicts",
    # Aggregates
    "AggregateSample",
    "PERSON",
    "VEHICLE",
    # Sources
    "SourceDescriptor",
    "SourceKind",
    # Config
    "Config",
    "SourceConfig",
    "ModelConfig",
    "FilterDefaults",
    "CountingConfig",
    "PipelineSettings",
    "WebConfig",
]

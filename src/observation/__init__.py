"""
Observation layer for pluggable frame sources.

This layer abstracts where frames come from (camera, video file, still image)
from the processing pipeline. Each source implements the FrameSource
interface and hands out FrameData objects.
"""

from .base import FrameSource, ObservationConfig, SourceState
from .opencv_source import (
    FileVideoSource,
    LiveStreamSource,
    OpenCVSourceConfig,
    StaticImageSource,
)
from .factory import create_source, guess_kind

__all__ = [
    "FrameSource",
    "ObservationConfig",
    "SourceState",
    "LiveStreamSource",
    "FileVideoSource",
    "StaticImageSource",
    "OpenCVSourceConfig",
    "create_source",
    "guess_kind",
]

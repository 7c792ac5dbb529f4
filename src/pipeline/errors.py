"""Exceptions and stop reasons for the detection pipeline."""

from __future__ import annotations

from enum import Enum


class PipelineError(Exception):
    """Base pipeline exception."""


class AcquisitionError(PipelineError):
    """Raised when a camera, video or image cannot be opened. The run never starts."""


class ModelLoadError(PipelineError):
    """Raised when the detection model cannot be loaded. The service cannot start."""


class InferenceError(PipelineError):
    """A single model call failed. Recovered locally as zero detections."""


class StopReason(str, Enum):
    """Why the last run stopped."""
    USER = "user"
    ENDED = "ended"
    COMPLETED = "completed"
    ERROR = "error"

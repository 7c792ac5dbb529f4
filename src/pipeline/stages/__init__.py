"""
Pipeline stages for the detection overlay.

Each stage handles a specific part of the frame cycle:
- detect: one model call per cycle
- render: draw instructions and per-bucket counts
"""

from .detect import DetectionInvoker, InferenceResult
from .render import FrameRenderer, RenderResult, draw_instructions

__all__ = [
    "DetectionInvoker",
    "InferenceResult",
    "FrameRenderer",
    "RenderResult",
    "draw_instructions",
]

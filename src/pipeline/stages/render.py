"""
Render stage: filtered detections -> draw instructions + per-bucket counts.

The stage only describes what to draw. draw_instructions() is the OpenCV
backend that turns instructions into pixels for the display window and the
overlay snapshot endpoint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from models.detection import Detection
from models.sample import PERSON, VEHICLE

# Colors (BGR)
COLOR_BOX = (136, 255, 0)
COLOR_LABEL_TEXT = (0, 0, 0)

FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.5
FONT_THICKNESS = 1
LABEL_PAD_X = 4
LABEL_PAD_Y = 6

VEHICLE_CLASSES = frozenset({"car", "truck", "bus"})

DEFAULT_BUCKETS: Dict[str, FrozenSet[str]] = {
    PERSON: frozenset({"person"}),
    VEHICLE: VEHICLE_CLASSES,
}


@dataclass(frozen=True)
class RectInstruction:
    """Stroke a rectangle at the bounding box."""
    x: int
    y: int
    width: int
    height: int
    color: Tuple[int, int, int] = COLOR_BOX
    thickness: int = 2

    def to_dict(self) -> dict:
        return {
            "type": "rect",
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class LabelInstruction:
    """
    Filled label background with text.

    (x, y) is the top-left of the label background; text_origin is the
    baseline-left point for the text itself.
    """
    text: str
    x: int
    y: int
    width: int
    height: int
    text_origin: Tuple[int, int]
    color: Tuple[int, int, int] = COLOR_BOX
    text_color: Tuple[int, int, int] = COLOR_LABEL_TEXT

    def to_dict(self) -> dict:
        return {
            "type": "label",
            "text": self.text,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "text_origin": list(self.text_origin),
        }


DrawInstruction = Union[RectInstruction, LabelInstruction]


@dataclass
class RenderResult:
    instructions: List[DrawInstruction] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "instructions": [i.to_dict() for i in self.instructions],
            "counts": dict(self.counts),
        }


def format_label(detection: Detection) -> str:
    return f"{detection.class_name} {round(detection.confidence * 100)}%"


def measure_label(text: str) -> Tuple[int, int]:
    """Label background size (width, height) in pixels."""
    (tw, th), _ = cv2.getTextSize(text, FONT, FONT_SCALE, FONT_THICKNESS)
    return tw + 2 * LABEL_PAD_X, th + LABEL_PAD_Y


def label_top(box_y: float, label_height: int, frame_height: Optional[int] = None) -> int:
    """
    Vertical position of the label background.

    Above the box when there is room; otherwise just below the box top.
    Never above the frame's top edge.
    """
    top = int(box_y) - label_height
    if top < 0:
        top = int(box_y)
    if frame_height is not None:
        top = min(top, frame_height - label_height)
    return max(0, top)


class FrameRenderer:
    """
    Translate filtered detections into draw instructions and counts.

    Counting policy: "person" increments the person bucket; car/truck/bus
    increment the combined vehicle bucket. Other classes are drawn but only
    counted when an extra bucket names them.
    """

    def __init__(self, extra_buckets: Optional[Mapping[str, Iterable[str]]] = None):
        self._buckets: Dict[str, FrozenSet[str]] = dict(DEFAULT_BUCKETS)
        for name, classes in (extra_buckets or {}).items():
            if name in DEFAULT_BUCKETS:
                logging.warning(f"Ignoring extra bucket '{name}': overrides a fixed bucket")
                continue
            self._buckets[name] = frozenset(classes)

    @property
    def buckets(self) -> Dict[str, FrozenSet[str]]:
        return dict(self._buckets)

    def empty_counts(self) -> Dict[str, int]:
        return {name: 0 for name in self._buckets}

    def count(self, detections: Sequence[Detection]) -> Dict[str, int]:
        counts = self.empty_counts()
        for det in detections:
            for name, classes in self._buckets.items():
                if det.class_name in classes:
                    counts[name] += 1
        return counts

    def render(
        self,
        detections: Sequence[Detection],
        frame_width: Optional[int] = None,
        frame_height: Optional[int] = None,
    ) -> RenderResult:
        instructions: List[DrawInstruction] = []
        for det in detections:
            x, y, w, h = (int(v) for v in det.bbox.as_tuple())
            instructions.append(RectInstruction(x=x, y=y, width=w, height=h))

            text = format_label(det)
            label_w, label_h = measure_label(text)
            top = label_top(y, label_h, frame_height)
            left = max(0, x)
            if frame_width is not None:
                left = max(0, min(left, frame_width - label_w))
            instructions.append(
                LabelInstruction(
                    text=text,
                    x=left,
                    y=top,
                    width=label_w,
                    height=label_h,
                    text_origin=(left + LABEL_PAD_X, top + label_h - LABEL_PAD_Y // 2),
                )
            )

        return RenderResult(instructions=instructions, counts=self.count(detections))


def draw_instructions(frame: np.ndarray, instructions: Iterable[DrawInstruction]) -> np.ndarray:
    """Draw instructions onto frame in place and return it."""
    for ins in instructions:
        if isinstance(ins, RectInstruction):
            cv2.rectangle(
                frame,
                (ins.x, ins.y),
                (ins.x + ins.width, ins.y + ins.height),
                ins.color,
                ins.thickness,
            )
        elif isinstance(ins, LabelInstruction):
            cv2.rectangle(
                frame,
                (ins.x, ins.y),
                (ins.x + ins.width, ins.y + ins.height),
                ins.color,
                -1,
            )
            cv2.putText(
                frame, ins.text, ins.text_origin, FONT, FONT_SCALE, ins.text_color, FONT_THICKNESS
            )
    return frame

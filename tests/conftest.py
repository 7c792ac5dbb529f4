"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.detection import BoundingBox, Detection  # noqa: E402


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
source:
  kind: "live"
  device_id: 0
  resolution: [640, 480]

model:
  backend: "ultralytics"
  model: "yolov8n.pt"

filter:
  min_confidence: 0.5
  active_categories: ["person", "car", "truck", "bus"]

pipeline:
  frame_delay_s: 0.3
  history_capacity: 30

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "source": {
            "kind": "live",
            "device_id": 0,
            "resolution": [1280, 720],
        },
        "model": {
            "backend": "ultralytics",
            "model": "yolov8n.pt",
            "conf_threshold": 0.25,
            "iou_threshold": 0.45,
        },
        "filter": {
            "min_confidence": 0.5,
            "active_categories": ["person", "car", "truck", "bus"],
        },
        "counting": {
            "extra_buckets": {},
        },
        "pipeline": {
            "frame_delay_s": 0.3,
            "history_capacity": 30,
        },
        "web": {
            "host": "127.0.0.1",
            "port": 5000,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def blank_frame():
    """A 640x480 black BGR frame."""
    return np.zeros((480, 640, 3), dtype=np.uint8)


def make_detection(class_name, confidence, bbox=(10, 20, 100, 50)):
    """Detection helper: bbox is (x, y, width, height)."""
    return Detection(
        class_name=class_name,
        confidence=confidence,
        bbox=BoundingBox.from_xywh(bbox),
    )


@pytest.fixture
def detection_factory():
    return make_detection

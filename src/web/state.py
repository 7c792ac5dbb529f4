import threading
from typing import Callable, Optional

import numpy as np

from models.frame import FrameData
from models.sample import AggregateSample
from observation import create_source
from pipeline.stages.render import RenderResult


class SharedState:
    """
    Singleton holding what the web routes need: the pipeline engine, the
    source factory, and the most recent frame with its overlay.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance._reset()
        return cls._instance

    def _reset(self):
        self.engine = None
        self.config = None
        self.source_factory: Callable = create_source
        self.frame: Optional[np.ndarray] = None
        self.frame_size = None
        self.render: Optional[RenderResult] = None
        self.frame_lock = threading.Lock()

    def reset(self):
        """Drop engine and cached frame (used between app instances and in tests)."""
        with self._lock:
            self._reset()

    def set_engine(self, engine, config=None):
        self.engine = engine
        self.config = config
        engine.add_callback(self.on_frame)

    def on_frame(self, frame_data: FrameData, render: RenderResult, sample: AggregateSample):
        """Engine callback: keep the latest frame and its overlay."""
        with self.frame_lock:
            self.frame = frame_data.frame.copy()
            self.frame_size = frame_data.size
            self.render = render

    def get_frame(self):
        """Latest frame copy and its render result, or (None, None)."""
        with self.frame_lock:
            if self.frame is None:
                return None, None
            return self.frame.copy(), self.render

    def get_overlay(self):
        with self.frame_lock:
            return self.frame_size, self.render


# Global instance
state = SharedState()

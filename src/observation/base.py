"""
FrameSource interface for the three source variants.

The pipeline engine depends only on this contract:
- live camera / network stream (never ends on its own)
- video file (ends at natural end of media)
- still image (exactly one frame)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from models.frame import FrameData
from models.source import SourceKind


class SourceState(str, Enum):
    """Union of the per-variant lifecycle states."""
    # live stream
    IDLE = "idle"
    ACTIVE = "active"
    STOPPED = "stopped"
    # video file / still image
    LOADING = "loading"
    PLAYING = "playing"
    ENDED = "ended"
    READY = "ready"
    CONSUMED = "consumed"


@dataclass
class ObservationConfig:
    """
    Base configuration for frame sources.

    Attributes:
        source_id: Identifier for this source (e.g., "webcam", "upload").
        resolution: Target resolution as (width, height). None = source default.
    """
    source_id: str = "default"
    resolution: Optional[Tuple[int, int]] = None


class FrameSource(ABC):
    """
    Abstract base class for frame sources.

    Lifecycle:
        1. Create instance with config
        2. await open() to acquire the media (AcquisitionError on failure)
        3. await advance() to fetch the next frame, then check is_ready()
           and take current_frame()
        4. release() to give the media back; safe to call repeatedly
    """

    kind: SourceKind
    initial_state: SourceState
    terminal_state: SourceState

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._state = self.initial_state
        self._frame: Optional[FrameData] = None
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def state(self) -> SourceState:
        return self._state

    @property
    def frame_index(self) -> int:
        """Number of frames read since open."""
        return self._frame_index

    @property
    def is_terminal(self) -> bool:
        """True once the source can produce no more frames."""
        return self._state == self.terminal_state

    def is_ready(self) -> bool:
        """A frame is available for inference."""
        return self._frame is not None and not self.is_terminal

    def current_frame(self) -> FrameData:
        if self._frame is None:
            raise RuntimeError(f"Source {self.source_id} has no frame ready")
        return self._frame

    @abstractmethod
    async def open(self) -> None:
        """
        Acquire the underlying media handle.

        Raises:
            AcquisitionError: If the camera/file/image cannot be opened.
        """

    @abstractmethod
    async def advance(self) -> None:
        """Fetch the next frame, or move to the terminal state at end of media."""

    @abstractmethod
    def release(self) -> None:
        """
        Release the media handle and enter the terminal state.

        Idempotent: releasing an already released source is a no-op.
        """

    def mark_consumed(self) -> None:
        """Called after a frame cycle completes. Single-shot sources finish here."""

    def _set_frame(self, frame) -> None:
        self._frame_index += 1
        self._frame = FrameData.from_numpy(frame, frame_index=self._frame_index)

    def describe(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "kind": self.kind.value,
            "state": self._state.value,
            "frame_index": self._frame_index,
        }

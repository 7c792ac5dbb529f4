"""
OpenCV-based frame sources.

Supports:
- USB webcams (device_id as int, e.g., 0) and network streams (device_id as URL)
- Video files (path)
- Still images (path)

Blocking OpenCV calls run in a worker thread so the event loop only suspends
while a frame is being read.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import cv2
import numpy as np

from models.source import SourceKind
from pipeline.errors import AcquisitionError
from .base import FrameSource, ObservationConfig, SourceState
from .rtsp_utils import is_stream_url, sanitize_url


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV-based sources.

    Attributes:
        device_id: Camera index (int) or stream URL (str). Live streams only.
        path: Media file path. Video files and images only.
        rtsp_transport: Transport protocol for RTSP ("tcp" or "udp").
        buffer_size: Capture buffer size (reduces latency for live feeds).
        max_retries: Open attempts for live streams.
        retry_delay_s: Base delay between open attempts (doubles each time).
        realtime: Video files seek to the wall-clock playback position, so
            frames are sampled the way a playing video would show them.
    """
    device_id: Union[int, str] = 0
    path: Optional[str] = None
    rtsp_transport: str = "tcp"
    buffer_size: int = 1
    max_retries: int = 3
    retry_delay_s: float = 0.5
    realtime: bool = True


class LiveStreamSource(FrameSource):
    """
    Camera or network stream. IDLE -> ACTIVE on open(); release() -> STOPPED.

    Read failures are transient: the frame is dropped and the stream stays
    ACTIVE until explicitly released.
    """

    kind = SourceKind.LIVE_STREAM
    initial_state = SourceState.IDLE
    terminal_state = SourceState.STOPPED

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._reading = False
        self._consecutive_failures = 0

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    async def open(self) -> None:
        if self._state == SourceState.ACTIVE:
            return
        if self._state == SourceState.STOPPED:
            raise AcquisitionError(f"Stream {self.source_id} was already stopped")

        cfg = self._opencv_config
        if is_stream_url(self.device_id) and str(self.device_id).startswith("rtsp"):
            os.environ["OPENCV_FFMPEG_CAPTURE_OPTIONS"] = f"rtsp_transport;{cfg.rtsp_transport}"

        attempts = max(1, cfg.max_retries)
        for attempt in range(attempts):
            cap = await asyncio.to_thread(cv2.VideoCapture, self.device_id)
            if cap.isOpened():
                self._cap = cap
                break
            cap.release()
            if attempt < attempts - 1:
                wait_time = min(cfg.retry_delay_s * (2 ** attempt), 10)
                logging.warning(
                    f"Failed to open device {sanitize_url(self.device_id)}, "
                    f"retrying in {wait_time:.1f}s ({attempt + 1}/{attempts})"
                )
                await asyncio.sleep(wait_time)
        else:
            raise AcquisitionError(
                f"Could not start camera: failed to open device "
                f"{sanitize_url(self.device_id)} after {attempts} attempts"
            )

        if isinstance(self.device_id, int) and cfg.resolution:
            w, h = cfg.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            self._cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)

        self._state = SourceState.ACTIVE
        self._frame_index = 0
        self._consecutive_failures = 0
        logging.info(
            f"LiveStreamSource opened: source_id={self.source_id}, "
            f"device={sanitize_url(self.device_id)}, resolution={cfg.resolution}"
        )

    async def advance(self) -> None:
        if self._state != SourceState.ACTIVE or self._cap is None:
            return

        self._reading = True
        try:
            ret, frame = await asyncio.to_thread(self._cap.read)
        finally:
            self._reading = False
            if self._state != SourceState.ACTIVE:
                # released while the read was in flight
                self._release_capture()

        if self._state != SourceState.ACTIVE:
            return

        if not ret or frame is None:
            self._consecutive_failures += 1
            self._frame = None
            logging.warning(
                f"Failed to read frame from {self.source_id} "
                f"(failures: {self._consecutive_failures})"
            )
            return

        self._consecutive_failures = 0
        self._set_frame(frame)

    def release(self) -> None:
        if self._state == SourceState.STOPPED:
            return
        self._state = SourceState.STOPPED
        self._frame = None
        if not self._reading:
            self._release_capture()
        logging.info(f"LiveStreamSource stopped: source_id={self.source_id}")

    def _release_capture(self) -> None:
        cap, self._cap = self._cap, None
        if cap is not None:
            cap.release()


class FileVideoSource(FrameSource):
    """
    Video file. LOADING -> PLAYING on open(); PLAYING -> ENDED at end of media
    or on release().
    """

    kind = SourceKind.FILE_VIDEO
    initial_state = SourceState.LOADING
    terminal_state = SourceState.ENDED

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._reading = False
        self._fps = 0.0
        self._frame_count = 0
        self._size: Tuple[int, int] = (0, 0)
        self._playback_start: Optional[float] = None

    @property
    def path(self) -> Optional[str]:
        return self._opencv_config.path

    @property
    def duration_ms(self) -> float:
        if self._fps > 0 and self._frame_count > 0:
            return self._frame_count / self._fps * 1000
        return 0.0

    async def open(self) -> None:
        if self._state != SourceState.LOADING:
            return
        if not self.path or not os.path.exists(self.path):
            raise AcquisitionError(f"Video file not found: {self.path}")

        cap = await asyncio.to_thread(cv2.VideoCapture, self.path)
        if not cap.isOpened():
            cap.release()
            raise AcquisitionError(f"Could not open video file: {self.path}")

        self._cap = cap
        self._fps = float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
        self._frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
        self._size = (
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0),
        )
        self._state = SourceState.PLAYING
        self._frame_index = 0
        self._playback_start = time.monotonic()
        logging.info(
            f"FileVideoSource playing: source_id={self.source_id}, path={self.path}, "
            f"size={self._size}, fps={self._fps:.1f}, frames={self._frame_count}"
        )

    def _read_at(self, position_ms: Optional[float]) -> Tuple[bool, Optional[np.ndarray]]:
        if position_ms is not None:
            self._cap.set(cv2.CAP_PROP_POS_MSEC, position_ms)
        return self._cap.read()

    async def advance(self) -> None:
        if self._state != SourceState.PLAYING or self._cap is None:
            return

        position_ms = None
        if self._opencv_config.realtime and self.duration_ms > 0:
            position_ms = (time.monotonic() - self._playback_start) * 1000
            if position_ms >= self.duration_ms:
                self._end()
                return

        self._reading = True
        try:
            ret, frame = await asyncio.to_thread(self._read_at, position_ms)
        finally:
            self._reading = False
            if self._state != SourceState.PLAYING:
                self._release_capture()

        if self._state != SourceState.PLAYING:
            return

        if not ret or frame is None:
            self._end()
            return

        self._set_frame(frame)

    def _end(self) -> None:
        logging.info(f"End of video file reached: {self.path}")
        self._state = SourceState.ENDED
        self._frame = None
        self._release_capture()

    def release(self) -> None:
        already_ended = self._state == SourceState.ENDED
        self._state = SourceState.ENDED
        self._frame = None
        if not self._reading:
            self._release_capture()
        if not already_ended:
            logging.info(f"FileVideoSource released: source_id={self.source_id}")

    def _release_capture(self) -> None:
        cap, self._cap = self._cap, None
        if cap is not None:
            cap.release()

    def get_video_info(self) -> Dict[str, Any]:
        return {
            "width": self._size[0],
            "height": self._size[1],
            "fps": self._fps,
            "frame_count": self._frame_count,
            "duration_ms": self.duration_ms,
        }


class StaticImageSource(FrameSource):
    """
    Still image. LOADING -> READY on open(); READY -> CONSUMED after its one
    frame cycle (or on release()).
    """

    kind = SourceKind.STATIC_IMAGE
    initial_state = SourceState.LOADING
    terminal_state = SourceState.CONSUMED

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config

    @property
    def path(self) -> Optional[str]:
        return self._opencv_config.path

    async def open(self) -> None:
        if self._state != SourceState.LOADING:
            return
        if not self.path or not os.path.exists(self.path):
            raise AcquisitionError(f"Image file not found: {self.path}")

        image = await asyncio.to_thread(cv2.imread, self.path, cv2.IMREAD_COLOR)
        if image is None:
            raise AcquisitionError(f"Could not decode image: {self.path}")

        self._set_frame(image)
        self._state = SourceState.READY
        logging.info(
            f"StaticImageSource ready: source_id={self.source_id}, path={self.path}, "
            f"size={self._frame.size}"
        )

    async def advance(self) -> None:
        # The decoded image is the only frame; nothing to fetch.
        return None

    def mark_consumed(self) -> None:
        self.release()

    def release(self) -> None:
        if self._state == SourceState.CONSUMED:
            return
        self._state = SourceState.CONSUMED
        self._frame = None

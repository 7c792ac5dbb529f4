"""
Build frame sources from source descriptors.
"""

from __future__ import annotations

import mimetypes
from typing import Optional

from models.source import SourceDescriptor, SourceKind
from pipeline.errors import AcquisitionError
from .base import FrameSource
from .opencv_source import (
    FileVideoSource,
    LiveStreamSource,
    OpenCVSourceConfig,
    StaticImageSource,
)

FILE_KIND = "file"


def guess_kind(path: str) -> SourceKind:
    """Pick image vs video from the file's MIME type."""
    mime, _ = mimetypes.guess_type(path)
    if mime and mime.startswith("image/"):
        return SourceKind.STATIC_IMAGE
    if mime and mime.startswith("video/"):
        return SourceKind.FILE_VIDEO
    raise AcquisitionError(f"Unsupported file type: {path}")


def create_source(descriptor: SourceDescriptor, source_id: Optional[str] = None) -> FrameSource:
    """
    Create an unopened FrameSource for a descriptor.

    Raises:
        AcquisitionError: Unknown kind, missing path, or unsupported file type.
    """
    kind_value = descriptor.kind
    if kind_value == FILE_KIND:
        if not descriptor.path:
            raise AcquisitionError("Choose a file first")
        kind = guess_kind(descriptor.path)
    else:
        try:
            kind = SourceKind(kind_value)
        except ValueError:
            raise AcquisitionError(f"Unknown source kind: {kind_value}") from None

    if kind != SourceKind.LIVE_STREAM and not descriptor.path:
        raise AcquisitionError("Choose a file first")

    config = OpenCVSourceConfig(
        source_id=source_id or kind.value,
        resolution=descriptor.resolution,
        device_id=descriptor.device_id if descriptor.device_id is not None else 0,
        path=descriptor.path,
        realtime=descriptor.realtime,
    )

    if kind == SourceKind.LIVE_STREAM:
        return LiveStreamSource(config)
    if kind == SourceKind.FILE_VIDEO:
        return FileVideoSource(config)
    return StaticImageSource(config)

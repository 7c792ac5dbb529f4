"""
Stream URL helpers.
"""

from __future__ import annotations

from typing import Union
from urllib.parse import urlparse, urlunparse


def sanitize_url(device: Union[int, str, None]) -> str:
    """
    Render a device id for logs and user-facing messages.

    Camera indices and file paths pass through; stream URLs lose any
    embedded user:password.
    """
    if not isinstance(device, str) or "://" not in device:
        return str(device)

    parsed = urlparse(device)
    if not parsed.username and not parsed.password:
        return device

    netloc = parsed.hostname or ""
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse((
        parsed.scheme, netloc, parsed.path,
        parsed.params, parsed.query, parsed.fragment
    ))


def is_stream_url(device: Union[int, str, None]) -> bool:
    return isinstance(device, str) and device.startswith(
        ("rtsp://", "rtsps://", "http://", "https://")
    )

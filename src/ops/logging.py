"""
Logging setup.

Everything logs through the root logger (`logging.info(...)` etc.), so a
single call here configures the whole service: console plus a rotating file.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that are chatty at INFO
NOISY_LOGGERS = ("ultralytics", "uvicorn.access", "multipart")


def setup_logging(log_path: str, log_level: str, max_bytes: int = 5_000_000, backup_count: int = 3) -> None:
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    level = getattr(logging, str(log_level).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count),
            logging.StreamHandler(),
        ],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

"""
Detection overlay service.

Loads the detection model once, then either serves the control API (the UI
starts/stops runs and adjusts filters over HTTP) or processes a single source
headless and optionally exports the count history.

Usage:
    python src/main.py --config config/config.yaml
    python src/main.py --source 0 --display
    python src/main.py --headless --export counts_history.csv
    python src/main.py --source media/street.mp4 --export counts_history.csv

Arguments:
    --config: Path to configuration file
    --source: Run one source headless (camera index, stream URL or file path)
    --headless: Run the configured `source:` headless (no --source needed)
    --kind: Source kind for --source (live|video|image|file)
    --display: Show the annotated frames in a window (headless mode)
    --export: Write the count history CSV when the run ends (headless mode)
"""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import replace
from typing import Any, Dict, Optional, Tuple

import cv2
import uvicorn
import yaml

from analytics.export import write_csv
from inference.cpu_backend import load_model
from models.config import Config
from models.source import SourceDescriptor
from observation import create_source
from ops.logging import setup_logging
from pipeline.engine import PipelineEngine, create_engine_from_config
from pipeline.errors import AcquisitionError, ModelLoadError
from pipeline.stages.detect import DetectionInvoker
from pipeline.stages.render import draw_instructions
from web.app import create_app

VALID_SOURCE_KINDS = ("live", "video", "image", "file")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not one of the files above
        explicit = os.path.abspath(config_path)
        if (
            os.path.exists(config_path)
            and explicit != os.path.abspath(local_overrides_path)
            and explicit != os.path.abspath(base_path)
        ):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['model', 'filter', 'pipeline', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Model
    model = config.get('model', {}) or {}
    if model.get('backend', 'ultralytics') != 'ultralytics':
        return False, "model.backend must be one of: ultralytics"
    if not isinstance(model.get('model'), str) or not model.get('model'):
        return False, "model.model is required"
    for key in ('conf_threshold', 'iou_threshold'):
        if key in model:
            value = model[key]
            if not isinstance(value, (int, float)) or not (0 <= value <= 1):
                return False, f"model.{key} must be a number between 0 and 1"

    # Filter
    flt = config.get('filter', {}) or {}
    if 'min_confidence' in flt:
        mc = flt['min_confidence']
        if not isinstance(mc, (int, float)) or not (0 <= mc <= 1):
            return False, "filter.min_confidence must be between 0 and 1"
    if 'active_categories' in flt:
        cats = flt['active_categories']
        if not isinstance(cats, list) or not all(isinstance(c, str) for c in cats):
            return False, "filter.active_categories must be a list of strings"

    # Pipeline
    pipeline = config.get('pipeline', {}) or {}
    if 'frame_delay_s' in pipeline:
        delay = pipeline['frame_delay_s']
        if not isinstance(delay, (int, float)) or delay < 0:
            return False, "pipeline.frame_delay_s must be a non-negative number"
    if 'history_capacity' in pipeline:
        cap = pipeline['history_capacity']
        if not isinstance(cap, int) or cap <= 0:
            return False, "pipeline.history_capacity must be a positive integer"

    # Counting buckets
    counting = config.get('counting', {}) or {}
    buckets = counting.get('extra_buckets', {}) or {}
    if not isinstance(buckets, dict):
        return False, "counting.extra_buckets must be a mapping of bucket -> classes"
    for name, classes in buckets.items():
        if not isinstance(classes, list):
            return False, f"counting.extra_buckets.{name} must be a list of class names"

    # Default source
    source = config.get('source', {}) or {}
    if source:
        if source.get('kind', 'live') not in VALID_SOURCE_KINDS:
            return False, f"source.kind must be one of: {', '.join(VALID_SOURCE_KINDS)}"
        device_id = source.get('device_id', 0)
        if not isinstance(device_id, (int, str)):
            return False, "source.device_id must be an integer (index) or string (URL)"
        if isinstance(device_id, int) and device_id < 0:
            return False, "source.device_id integer must be non-negative"
        resolution = source.get('resolution')
        if resolution is not None:
            if not isinstance(resolution, list) or len(resolution) != 2:
                return False, "source.resolution must be a list of [width, height]"
            if not all(isinstance(x, int) and x > 0 for x in resolution):
                return False, "source.resolution values must be positive integers"

    # Log settings
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def parse_source_arg(
    value: str, kind: Optional[str], defaults: Optional[SourceDescriptor] = None
) -> SourceDescriptor:
    """
    Turn --source/--kind into a descriptor. Bare integers are camera indices.

    Resolution and realtime come from the configured default source.
    """
    base = defaults or SourceDescriptor()
    if kind is None:
        kind = "live" if value.isdigit() or "://" in value else "file"
    if kind == "live":
        device_id = int(value) if value.isdigit() else value
        return replace(base, kind=kind, device_id=device_id, path=None)
    return replace(base, kind=kind, path=value)


async def run_headless(
    engine: PipelineEngine,
    descriptor: SourceDescriptor,
    display: bool = False,
    export_path: Optional[str] = None,
) -> int:
    """Process one source until it ends (or 'q' / Ctrl+C), then export."""
    if display:
        def show(frame_data, render, sample):
            annotated = draw_instructions(frame_data.frame.copy(), render.instructions)
            cv2.imshow("Detection Overlay", annotated)
            if cv2.waitKey(1) & 0xFF == ord('q'):
                engine.stop()

        engine.add_callback(show)

    try:
        await engine.start(create_source(descriptor, source_id="cli"))
    except AcquisitionError as e:
        logging.error(f"Could not start: {e}")
        return 1

    try:
        await engine.wait()
    finally:
        engine.stop()
        if display:
            cv2.destroyAllWindows()

    if export_path:
        with open(export_path, "w", newline="") as f:
            write_csv(engine.history.to_rows(), f)
        logging.info(f"Count history exported: {export_path} ({len(engine.history)} rows)")
    return 0


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Detection Overlay')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--source', type=str, default=None,
                        help='Process a single source headless (camera index, URL or file)')
    parser.add_argument('--headless', action='store_true',
                        help='Run the configured default source once instead of serving the API')
    parser.add_argument('--kind', type=str, choices=VALID_SOURCE_KINDS, default=None,
                        help='Source kind for --source (default: guess)')
    parser.add_argument('--display', action='store_true',
                        help='Show annotated frames (headless mode)')
    parser.add_argument('--export', type=str, default=None,
                        help='Write count history CSV at the end (headless mode)')
    parser.add_argument('--host', type=str, default=None, help='Web server host')
    parser.add_argument('--port', type=int, default=None, help='Web server port')
    args = parser.parse_args()

    raw_config = load_config(args.config)

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    config = Config.from_dict(raw_config)
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting Detection Overlay")

    try:
        model = load_model(config.model)
    except ModelLoadError as e:
        logging.error(str(e))
        sys.exit(1)

    engine = create_engine_from_config(config, DetectionInvoker(model))

    if args.source is not None or args.headless:
        default_source = config.source.to_descriptor()
        if args.source is not None:
            descriptor = parse_source_arg(args.source, args.kind, default_source)
        else:
            descriptor = default_source
        try:
            code = asyncio.run(
                run_headless(engine, descriptor, display=args.display, export_path=args.export)
            )
        except KeyboardInterrupt:
            logging.info("Interrupted by user")
            code = 0
        sys.exit(code)

    host = args.host or config.web.host
    port = args.port or config.web.port
    logging.info(f"Web interface starting on {host}:{port}")
    uvicorn.run(create_app(engine, config), host=host, port=port, log_level="info")
    logging.info("Detection Overlay stopped")


if __name__ == "__main__":
    main()

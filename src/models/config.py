"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .source import SourceDescriptor

DEFAULT_ACTIVE_CATEGORIES = ["person", "car", "truck", "bus"]


@dataclass
class SourceConfig:
    """Default frame source configuration."""
    kind: str = "live"
    device_id: Union[int, str] = 0
    path: Optional[str] = None
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    realtime: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            kind=d.get("kind", "live"),
            device_id=d.get("device_id", 0),
            path=d.get("path"),
            resolution=d.get("resolution", [1280, 720]),
            realtime=d.get("realtime", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "device_id": self.device_id,
            "path": self.path,
            "resolution": self.resolution,
            "realtime": self.realtime,
        }

    def to_descriptor(self) -> SourceDescriptor:
        """Default source the CLI and the start endpoint fall back to."""
        return SourceDescriptor(
            kind=self.kind,
            device_id=self.device_id,
            path=self.path,
            resolution=tuple(self.resolution) if self.resolution else None,
            realtime=self.realtime,
        )


@dataclass
class ModelConfig:
    """Detection model configuration."""
    backend: str = "ultralytics"
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    classes: Optional[List[int]] = None
    class_name_overrides: Optional[Dict[int, str]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        return cls(
            backend=d.get("backend", "ultralytics"),
            model=d.get("model", "yolov8n.pt"),
            conf_threshold=d.get("conf_threshold", 0.25),
            iou_threshold=d.get("iou_threshold", 0.45),
            classes=d.get("classes"),
            class_name_overrides=d.get("class_name_overrides"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "backend": self.backend,
            "model": self.model,
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
        }
        if self.classes is not None:
            d["classes"] = self.classes
        if self.class_name_overrides is not None:
            d["class_name_overrides"] = self.class_name_overrides
        return d


@dataclass
class FilterDefaults:
    """Initial filter settings; the control surface may change them at runtime."""
    min_confidence: float = 0.5
    active_categories: List[str] = field(default_factory=lambda: list(DEFAULT_ACTIVE_CATEGORIES))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FilterDefaults":
        return cls(
            min_confidence=d.get("min_confidence", 0.5),
            active_categories=list(d.get("active_categories", DEFAULT_ACTIVE_CATEGORIES)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_confidence": self.min_confidence,
            "active_categories": self.active_categories,
        }


@dataclass
class CountingConfig:
    """Additional count buckets on top of the fixed person/vehicle policy."""
    extra_buckets: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CountingConfig":
        return cls(extra_buckets=dict(d.get("extra_buckets") or {}))

    def to_dict(self) -> Dict[str, Any]:
        return {"extra_buckets": self.extra_buckets}


@dataclass
class PipelineSettings:
    """Loop cadence and history sizing."""
    frame_delay_s: float = 0.3
    history_capacity: int = 30

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PipelineSettings":
        return cls(
            frame_delay_s=d.get("frame_delay_s", 0.3),
            history_capacity=d.get("history_capacity", 30),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame_delay_s": self.frame_delay_s,
            "history_capacity": self.history_capacity,
        }


@dataclass
class WebConfig:
    """Control surface (web server) configuration."""
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "0.0.0.0"), port=d.get("port", 5000))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    source: SourceConfig = field(default_factory=SourceConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    filter: FilterDefaults = field(default_factory=FilterDefaults)
    counting: CountingConfig = field(default_factory=CountingConfig)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/detection_overlay.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            source=SourceConfig.from_dict(d.get("source", {}) or {}),
            model=ModelConfig.from_dict(d.get("model", {}) or {}),
            filter=FilterDefaults.from_dict(d.get("filter", {}) or {}),
            counting=CountingConfig.from_dict(d.get("counting", {}) or {}),
            pipeline=PipelineSettings.from_dict(d.get("pipeline", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/detection_overlay.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "source": self.source.to_dict(),
            "model": self.model.to_dict(),
            "filter": self.filter.to_dict(),
            "counting": self.counting.to_dict(),
            "pipeline": self.pipeline.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }

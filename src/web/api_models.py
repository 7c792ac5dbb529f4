from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


class StartRequest(BaseModel):
    """Source to open; unset fields fall back to the configured default source."""
    kind: Optional[str] = Field(None, description="live|video|image|file")
    device_id: Union[int, str, None] = Field(None, description="Camera index or stream URL (live)")
    path: Optional[str] = Field(None, description="Media file path (video|image|file)")
    resolution: Optional[List[int]] = None
    realtime: Optional[bool] = None
    min_confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    active_categories: Optional[List[str]] = None

    @field_validator("device_id")
    @classmethod
    def camera_index_as_int(cls, v):
        # "0" is camera 0, not a file called "0"
        if isinstance(v, str) and v.strip().isdigit():
            return int(v)
        return v


class MinConfidenceRequest(BaseModel):
    value: float = Field(..., ge=0.0, le=1.0)


class CategoriesRequest(BaseModel):
    categories: List[str]


class FilterResponse(BaseModel):
    min_confidence: float
    active_categories: List[str]


class PipelineStatusResponse(BaseModel):
    running: bool
    epoch: int
    source: Optional[Dict[str, object]] = None
    filter: FilterResponse
    stats: Dict[str, object]


class CountsResponse(BaseModel):
    time: Optional[str] = Field(None, description="HH:MM:SS of the latest sample")
    counts: Dict[str, int]


class HistoryResponse(BaseModel):
    """Chart-shaped history: parallel lists, oldest first."""
    capacity: int
    labels: List[str]
    people: List[int]
    vehicles: List[int]


class OverlayResponse(BaseModel):
    width: Optional[int] = None
    height: Optional[int] = None
    instructions: List[Dict[str, object]] = Field(default_factory=list)
    counts: Dict[str, int] = Field(default_factory=dict)

from __future__ import annotations

import logging
from dataclasses import replace

import cv2
from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from analytics.export import CSV_FILENAME, rows_to_csv
from analytics.filtering import FilterConfig
from models.source import SourceDescriptor
from pipeline.engine import PipelineEngine
from pipeline.errors import AcquisitionError
from pipeline.stages.render import draw_instructions

from ..api_models import (
    CategoriesRequest,
    CountsResponse,
    FilterResponse,
    HistoryResponse,
    MinConfidenceRequest,
    OverlayResponse,
    PipelineStatusResponse,
    StartRequest,
)
from ..state import state

router = APIRouter()


def _require_engine() -> PipelineEngine:
    if state.engine is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialized")
    return state.engine


def _filter_config_from_request(req: StartRequest, engine: PipelineEngine):
    """Per-start filter override; unset fields keep the current settings."""
    if req.min_confidence is None and req.active_categories is None:
        return None
    current = engine.filter_settings.snapshot()
    return FilterConfig(
        min_confidence=(
            req.min_confidence if req.min_confidence is not None else current.min_confidence
        ),
        active_categories=(
            frozenset(req.active_categories)
            if req.active_categories is not None
            else current.active_categories
        ),
    )


def _descriptor_from_request(req: StartRequest) -> SourceDescriptor:
    """Request fields override the configured default source."""
    base = state.config.source.to_descriptor() if state.config is not None else SourceDescriptor()
    overrides = {
        name: getattr(req, name)
        for name in ("kind", "device_id", "path", "realtime")
        if getattr(req, name) is not None
    }
    if req.resolution:
        overrides["resolution"] = tuple(req.resolution)
    return replace(base, **overrides)


@router.get("/status", response_model=PipelineStatusResponse)
def pipeline_status():
    return _require_engine().status()


@router.post("/pipeline/start", response_model=PipelineStatusResponse)
async def start_pipeline(req: StartRequest):
    """
    Open the requested source and start the frame loop.

    Acquisition failures (camera unavailable, missing or unsupported file)
    return 400 with a displayable message; the pipeline stays idle.
    """
    engine = _require_engine()
    descriptor = _descriptor_from_request(req)
    try:
        source = state.source_factory(descriptor)
        await engine.start(source, _filter_config_from_request(req, engine))
    except AcquisitionError as e:
        logging.warning(f"Start failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    return engine.status()


@router.post("/pipeline/stop", response_model=PipelineStatusResponse)
async def stop_pipeline():
    """Idempotent. Handlers that touch the engine are async so they run on its event loop."""
    engine = _require_engine()
    engine.stop()
    return engine.status()


@router.get("/filter", response_model=FilterResponse)
def get_filter():
    return _require_engine().filter_settings.snapshot().to_dict()


@router.put("/filter/min-confidence", response_model=FilterResponse)
async def set_min_confidence(req: MinConfidenceRequest):
    settings = _require_engine().filter_settings
    try:
        settings.set_min_confidence(req.value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return settings.snapshot().to_dict()


@router.put("/filter/categories", response_model=FilterResponse)
async def set_active_categories(req: CategoriesRequest):
    settings = _require_engine().filter_settings
    settings.set_active_categories(req.categories)
    return settings.snapshot().to_dict()


@router.get("/counts/latest", response_model=CountsResponse)
def latest_counts():
    engine = _require_engine()
    sample = engine.history.latest()
    if sample is None:
        return {"time": None, "counts": engine.renderer.empty_counts()}
    return {"time": sample.time_label, "counts": dict(sample.counts)}


@router.get("/history", response_model=HistoryResponse)
def history():
    engine = _require_engine()
    return {"capacity": engine.history.capacity, **engine.history.to_series()}


@router.get("/history.csv")
def history_csv():
    engine = _require_engine()
    return Response(
        content=rows_to_csv(engine.history.to_rows()),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{CSV_FILENAME}"'},
    )


@router.get("/overlay", response_model=OverlayResponse)
def overlay():
    size, render = state.get_overlay()
    if render is None:
        return OverlayResponse()
    return OverlayResponse(
        width=size[0],
        height=size[1],
        instructions=[i.to_dict() for i in render.instructions],
        counts=render.counts,
    )


@router.get("/overlay.jpg")
def overlay_snapshot():
    frame, render = state.get_frame()
    if frame is None:
        raise HTTPException(status_code=404, detail="No frame processed yet")

    draw_instructions(frame, render.instructions if render else [])
    ok, buf = cv2.imencode(".jpg", frame)
    if not ok:
        raise HTTPException(status_code=500, detail="Failed to encode JPEG")
    return Response(
        content=buf.tobytes(),
        media_type="image/jpeg",
        headers={"Cache-Control": "no-store"},
    )

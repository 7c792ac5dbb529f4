"""
FastAPI application factory for the detection overlay control surface.

Routes:
- /api/pipeline/start, /api/pipeline/stop -> run control
- /api/filter/* -> confidence threshold and active categories
- /api/counts/latest, /api/history, /api/history.csv -> counts and export
- /api/overlay, /api/overlay.jpg -> latest draw instructions / annotated frame
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from models.config import Config
from pipeline.engine import PipelineEngine

from .routes import api
from .state import state


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # release the camera/file when the server goes down
    if state.engine is not None:
        state.engine.stop()


def create_app(engine: Optional[PipelineEngine] = None, config: Optional[Config] = None) -> FastAPI:
    """Create the FastAPI app and bind it to a pipeline engine."""
    app = FastAPI(
        title="Detection Overlay",
        version="0.1.0",
        description="Real-time detection overlay and category counting",
        lifespan=lifespan,
    )

    # CORS for a separately served UI (e.g. Vite dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")

    if engine is not None:
        state.reset()
        state.set_engine(engine, config)

    return app

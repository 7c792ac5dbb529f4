"""
Pipeline engine for the detection overlay.

This module owns the run/stop state and drives the cooperative loop:
frame source -> detection -> category filter -> render -> history.
Everything runs on one asyncio event loop; the only suspension points are
reading the next frame and awaiting the model.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from analytics.filtering import FilterConfig, FilterSettings, apply_filter
from analytics.history import HistoryBuffer
from models.config import Config
from models.sample import AggregateSample
from models.source import SourceKind
from observation.base import FrameSource
from pipeline.errors import StopReason
from pipeline.stages.detect import DetectionInvoker
from pipeline.stages.render import FrameRenderer, RenderResult

FrameCallback = Callable[..., None]


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        frame_delay_s: Pause between cycles for live streams and video files.
            A floor on the inference rate, not a ceiling: slow inference just
            runs cycles back to back.
        stats_log_interval: Seconds between status log messages.
    """
    frame_delay_s: float = 0.3
    stats_log_interval: float = 60.0


@dataclass
class PipelineStats:
    """Runtime statistics for the current (or last) run."""
    frame_count: int = 0
    inference_failures: int = 0
    discarded_results: int = 0
    last_latency_ms: float = 0.0
    last_counts: Dict[str, int] = field(default_factory=dict)
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    stop_reason: Optional[StopReason] = None

    def to_dict(self) -> dict:
        return {
            "frame_count": self.frame_count,
            "inference_failures": self.inference_failures,
            "discarded_results": self.discarded_results,
            "last_latency_ms": round(self.last_latency_ms, 1),
            "last_counts": dict(self.last_counts),
            "uptime_seconds": int(time.time() - self.start_time),
            "stop_reason": self.stop_reason.value if self.stop_reason else None,
        }


class PipelineEngine:
    """
    Orchestrates frame cycles against one frame source at a time.

    Stale results are discarded with an epoch counter: every start() and
    stop() bumps the epoch, and a cycle only applies its result while the
    epoch it started under is still current and the engine is running.

    Example:
        engine = PipelineEngine(DetectionInvoker(model), FilterSettings(...),
                                FrameRenderer(), HistoryBuffer())
        await engine.start(create_source(descriptor))
        await engine.wait()
    """

    def __init__(
        self,
        invoker: DetectionInvoker,
        filter_settings: FilterSettings,
        renderer: FrameRenderer,
        history: HistoryBuffer,
        config: Optional[PipelineConfig] = None,
    ):
        self.invoker = invoker
        self.filter_settings = filter_settings
        self.renderer = renderer
        self.history = history
        self.config = config or PipelineConfig()
        self.stats = PipelineStats()
        self._running = False
        self._epoch = 0
        self._source: Optional[FrameSource] = None
        self._task: Optional[asyncio.Task] = None
        self._start_lock = asyncio.Lock()
        self._callbacks: List[FrameCallback] = []
        self.last_render: Optional[RenderResult] = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def source(self) -> Optional[FrameSource]:
        return self._source

    def add_callback(self, callback: FrameCallback) -> None:
        """
        Add a callback to be called after each completed frame cycle.

        Args:
            callback: Function taking (frame_data, render_result, sample).
        """
        self._callbacks.append(callback)

    async def start(
        self, source: FrameSource, filter_config: Optional[FilterConfig] = None
    ) -> asyncio.Task:
        """
        Acquire the source and begin the loop for its variant.

        Overlapping calls are serialized: each start stops whatever run
        the previous one installed before installing its own.

        Raises:
            AcquisitionError: If the source cannot be opened. The engine
                stays stopped and the filter settings are unchanged.
        """
        async with self._start_lock:
            if self._running:
                logging.info("Pipeline already running, stopping current run first")
                self.stop()

            await source.open()

            if filter_config is not None:
                self.filter_settings.replace(filter_config)

            self._epoch += 1
            self._running = True
            self._source = source
            self.stats = PipelineStats()
            self.last_render = None
            epoch = self._epoch
            self._task = asyncio.create_task(self._run(source, epoch))
        logging.info(
            f"Pipeline started: source={source.source_id}, kind={source.kind.value}, epoch={epoch}"
        )
        return self._task

    def stop(self) -> None:
        """
        Stop the current run and release the source.

        In-flight inference is not cancelled; its result is dropped when it
        arrives. Safe to call when already stopped.
        """
        if self._running:
            self._epoch += 1
            self._finish(StopReason.USER)
        elif self._source is not None:
            self._source.release()

    async def wait(self) -> None:
        """Wait for the current loop task to exit."""
        if self._task is not None:
            await self._task

    def _is_current(self, epoch: int) -> bool:
        return self._running and epoch == self._epoch

    def _finish(self, reason: StopReason) -> None:
        self._running = False
        self.stats.stop_reason = reason
        if self._source is not None:
            self._source.release()
        logging.info(
            f"Pipeline stopped: reason={reason.value}, frames={self.stats.frame_count}, "
            f"inference_failures={self.stats.inference_failures}"
        )

    async def _run(self, source: FrameSource, epoch: int) -> None:
        try:
            while self._is_current(epoch):
                await source.advance()
                if not self._is_current(epoch):
                    break

                if source.is_terminal:
                    # natural end of media, not a user stop
                    self._finish(StopReason.ENDED)
                    break

                if source.is_ready():
                    await self._run_cycle(source, epoch)
                    if not self._is_current(epoch):
                        break

                if source.kind == SourceKind.STATIC_IMAGE and source.is_terminal:
                    self._finish(StopReason.COMPLETED)
                    break

                self._handle_periodic_tasks()
                await asyncio.sleep(self.config.frame_delay_s)
        except Exception as e:
            logging.exception(f"Pipeline error: {e}")
            if self._is_current(epoch):
                self._finish(StopReason.ERROR)
        finally:
            if source is not self._source:
                # superseded by a later start
                source.release()

    async def _run_cycle(self, source: FrameSource, epoch: int) -> Optional[AggregateSample]:
        """
        One frame cycle: invoke -> filter -> render -> aggregate -> push.

        Returns the pushed sample, or None if the result went stale.
        """
        frame_data = source.current_frame()
        filter_config = self.filter_settings.snapshot()

        result = await self.invoker.invoke(frame_data.frame)

        if not self._is_current(epoch):
            self.stats.discarded_results += 1
            logging.debug(f"Discarding stale inference result (epoch {epoch} != {self._epoch})")
            return None

        if not result.ok:
            self.stats.inference_failures += 1

        filtered = apply_filter(result.detections, filter_config)
        render = self.renderer.render(filtered, frame_data.width, frame_data.height)
        sample = AggregateSample.from_counts(render.counts, timestamp=datetime.now())
        self.history.push(sample)
        source.mark_consumed()

        self.stats.frame_count += 1
        self.stats.last_latency_ms = result.latency_ms
        self.stats.last_counts = dict(sample.counts)
        self.last_render = render

        for callback in self._callbacks:
            try:
                callback(frame_data, render, sample)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

        return sample

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            logging.info(
                f"Pipeline stats: frames={self.stats.frame_count}, "
                f"inference_failures={self.stats.inference_failures}, "
                f"last_counts={self.stats.last_counts}"
            )
            self.stats.last_stats_log_time = now

    def status(self) -> dict:
        return {
            "running": self._running,
            "epoch": self._epoch,
            "source": self._source.describe() if self._source is not None else None,
            "filter": self.filter_settings.snapshot().to_dict(),
            "stats": self.stats.to_dict(),
        }


def create_engine_from_config(config: Config, invoker: DetectionInvoker) -> PipelineEngine:
    """
    Factory function to create a PipelineEngine from the typed config.

    Args:
        config: Full application config.
        invoker: Invoker wrapping the already-loaded model.
    """
    return PipelineEngine(
        invoker=invoker,
        filter_settings=FilterSettings.from_defaults(config.filter),
        renderer=FrameRenderer(extra_buckets=config.counting.extra_buckets),
        history=HistoryBuffer(capacity=config.pipeline.history_capacity),
        config=PipelineConfig(frame_delay_s=config.pipeline.frame_delay_s),
    )

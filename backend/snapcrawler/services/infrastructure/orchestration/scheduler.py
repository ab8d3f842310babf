"""
Periodic driver for the pipeline.

Each tick runs discovery (when enabled) and then one pass over every stage.
A failing tick is logged and the loop keeps going; only cancellation stops it.
"""

import asyncio
from typing import Any, Dict, Optional

from snapcrawler.core import get_logger
from snapcrawler.services.pipeline import ClipPipeline
from snapcrawler.services.pipeline.runner import summarize_reports

logger = get_logger(__name__, component="scheduler")


class PipelineScheduler:
    def __init__(
        self,
        pipeline: ClipPipeline,
        interval_seconds: float,
        discovery_enabled: bool = True,
    ):
        self.pipeline = pipeline
        self.interval_seconds = interval_seconds
        self.discovery_enabled = discovery_enabled
        self._lock = asyncio.Lock()
        self.last_summary: Optional[Dict[str, Any]] = None

    async def run_once(self) -> Dict[str, Any]:
        """One tick. Overlapping ticks are serialized."""
        async with self._lock:
            summary: Dict[str, Any] = {}
            if self.discovery_enabled:
                summary["discovery"] = (await self.pipeline.discover()).to_dict()
            summary["stages"] = summarize_reports(await self.pipeline.run_all_stages())
            self.last_summary = summary
            return summary

    async def run_periodic(self) -> None:
        logger.info("Pipeline scheduler started", extra={"interval_seconds": self.interval_seconds})
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.error("Scheduled pipeline tick failed", extra={"error": str(exc)}, exc_info=True)
            await asyncio.sleep(self.interval_seconds)

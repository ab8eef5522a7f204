"""Polls the vehicle feed and runs each batch through the motion engine."""

import datetime
import logging
import time
from dataclasses import dataclass

from subway_motion.config import settings
from subway_motion.core.batch_scheduler import ChunkedBatch, run_batch
from subway_motion.core.broadcaster import Broadcaster
from subway_motion.core.engine import MotionEngine
from subway_motion.core.feed_client import FeedClient, FeedError
from subway_motion.core.track_loader import load_track_index
from subway_motion.core.vehicle_store import utcnow

logger = logging.getLogger(__name__)


@dataclass
class PollStats:
    cycles: int = 0
    skipped_polls: int = 0
    fetch_failures: int = 0
    last_cycle_at: datetime.datetime | None = None
    last_fixes: int = 0
    last_ticks: int = 0
    last_duration_ms: float = 0.0


class FeedPoller:
    """Single-flight update cycle: fetch, process in chunks, publish.

    A poll that arrives while a previous cycle (fetch or chunked processing)
    is still running is dropped, not queued.
    """

    def __init__(
        self,
        feed: FeedClient,
        engine: MotionEngine,
        broadcaster: Broadcaster | None = None,
        batch_size: int = settings.batch_size,
        clock_lag_seconds: float = settings.clock_lag_seconds,
    ) -> None:
        self.feed = feed
        self.engine = engine
        self.broadcaster = broadcaster
        self.batch_size = batch_size
        self.clock_lag = datetime.timedelta(seconds=clock_lag_seconds)
        self.stats = PollStats()
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def render_time(self) -> datetime.datetime:
        """Renderer clock: wall clock delayed by ``clock_lag_seconds``."""
        return utcnow() - self.clock_lag

    def _finish_cycle(self) -> None:
        self._in_flight = False

    async def poll(self) -> bool:
        """Run one update cycle; False when skipped or failed."""
        if self._in_flight:
            self.stats.skipped_polls += 1
            logger.info("Previous update cycle still running, skipping poll")
            return False

        self._in_flight = True
        now = self.render_time()
        try:
            fixes = await self.feed.fetch_fixes()
        except FeedError as e:
            self.stats.fetch_failures += 1
            logger.error("Vehicle feed fetch failed: %s", e)
            self._in_flight = False
            return False
        except Exception:
            self.stats.fetch_failures += 1
            logger.exception("Vehicle feed fetch failed")
            self._in_flight = False
            return False

        seen_at = utcnow()
        started = time.perf_counter()
        batch = ChunkedBatch(
            fixes,
            lambda fix: self.engine.process_fix(fix, now, seen_at),
            on_complete=self._finish_cycle,
            batch_size=self.batch_size,
        )
        try:
            ticks = await run_batch(batch)
        except Exception:
            logger.exception("Error in vehicle update cycle")
            self._in_flight = False
            return False

        self.stats.cycles += 1
        self.stats.last_cycle_at = seen_at
        self.stats.last_fixes = len(fixes)
        self.stats.last_ticks = ticks
        self.stats.last_duration_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Processed %d fixes in %d ticks (%.0fms), tracking %d vehicles",
            len(fixes), ticks, self.stats.last_duration_ms, len(self.engine.store),
        )

        evicted = self.engine.evict_stale(seen_at)
        updates = self.engine.drain_updates()
        if self.broadcaster is not None:
            await self.broadcaster.publish(
                [u.to_dict() for u in updates],
                [e.to_dict() for e in self.engine.snapshot()],
                evicted,
            )
        return True

    async def refresh_tracks(self) -> bool:
        """Reload track geometry; the current index is kept when loading fails."""
        index = await load_track_index()
        if index is None or not index:
            logger.warning(
                "Track geometry unavailable, keeping %d indexed segments",
                self.engine.tracks.segment_count(),
            )
            return False
        self.engine.set_tracks(index)
        return True

"""APScheduler setup for periodic tasks."""

import datetime
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)


def create_scheduler(poller) -> AsyncIOScheduler:
    """Create and configure the scheduler with all jobs."""
    from subway_motion.config import settings

    scheduler = AsyncIOScheduler()

    # Poll the feed every N seconds, first run immediately
    scheduler.add_job(
        poller.poll,
        "interval",
        seconds=settings.poll_interval_seconds,
        id="poll_vehicles",
        name="Poll GTFS-RT feeds for vehicle positions",
        next_run_time=datetime.datetime.now(datetime.timezone.utc),
        max_instances=1,
    )

    # Refresh track geometry every N hours
    scheduler.add_job(
        poller.refresh_tracks,
        "interval",
        hours=settings.track_refresh_hours,
        id="refresh_tracks",
        name="Refresh subway track geometry",
        max_instances=1,
    )

    return scheduler

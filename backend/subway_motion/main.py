"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from subway_motion.api import diagnostics, lines, vehicles, ws
from subway_motion.config import settings
from subway_motion.core.broadcaster import Broadcaster
from subway_motion.core.engine import MotionEngine
from subway_motion.core.feed_client import FeedClient, StopLookup
from subway_motion.core.poller import FeedPoller
from subway_motion.core.scheduler import create_scheduler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    feed = FeedClient(StopLookup.from_csv(settings.stops_path))
    broadcaster = Broadcaster()
    await broadcaster.connect()

    engine = MotionEngine()
    poller = FeedPoller(feed, engine, broadcaster)

    # Wire up API modules
    ws.broadcaster = broadcaster
    ws.engine = engine
    vehicles.engine = engine
    lines.engine = engine
    diagnostics.poller = poller

    # Without geometry fixes are dropped until the refresh job succeeds
    try:
        await poller.refresh_tracks()
    except Exception:
        logger.exception("Failed to load initial track geometry - will retry")

    scheduler = create_scheduler(poller)
    scheduler.start()
    logger.info("Subway Motion started - polling feeds every %ds", settings.poll_interval_seconds)

    yield

    # Shutdown
    scheduler.shutdown(wait=False)
    await feed.close()
    await broadcaster.close()
    logger.info("Subway Motion shut down")


app = FastAPI(
    title="NYC Subway Live Motion",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(lines.router)
app.include_router(vehicles.router)
app.include_router(diagnostics.router)
app.include_router(ws.router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}

"""Redis pub/sub broadcaster for vehicle motion updates."""

import asyncio
import logging

import orjson
import redis.asyncio as aioredis

from subway_motion.config import settings

logger = logging.getLogger(__name__)

CHANNEL = "subway:motion"
STATE_KEY = "subway:state"


class Broadcaster:
    """Publishes full-replacement motion updates to Redis and WebSocket subscribers."""

    def __init__(self) -> None:
        self._redis: aioredis.Redis | None = None
        self._subscribers: set[asyncio.Queue] = set()

    async def connect(self) -> None:
        self._redis = aioredis.from_url(settings.redis_url, decode_responses=False)

    async def close(self) -> None:
        if self._redis:
            await self._redis.aclose()

    async def publish(
        self,
        updates: list[dict],
        snapshot: list[dict],
        evicted: list[str] | None = None,
    ) -> None:
        """Publish one cycle's updates; ``snapshot`` becomes the state for new connections."""
        messages = []
        if updates:
            messages.append(orjson.dumps({"type": "update", "vehicles": updates}))
        if evicted:
            messages.append(orjson.dumps({"type": "evict", "ids": evicted}))

        if self._redis:
            try:
                await self._redis.set(STATE_KEY, orjson.dumps({"type": "snapshot", "vehicles": snapshot}))
                for payload in messages:
                    await self._redis.publish(CHANNEL, payload)
            except Exception:
                logger.exception("Failed to publish to Redis")

        dead = set()
        for q in self._subscribers:
            for payload in messages:
                try:
                    q.put_nowait(payload)
                except asyncio.QueueFull:
                    dead.add(q)
                    break
        self._subscribers -= dead

    async def get_current_state(self) -> bytes | None:
        """Get latest motion snapshot from Redis."""
        if self._redis:
            try:
                return await self._redis.get(STATE_KEY)
            except Exception:
                logger.exception("Failed to get state from Redis")
        return None

    def subscribe(self) -> asyncio.Queue:
        """Create a new subscriber queue for WebSocket fan-out."""
        q: asyncio.Queue = asyncio.Queue(maxsize=10)
        self._subscribers.add(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        self._subscribers.discard(q)

"""Async client for the MTA GTFS-Realtime subway feeds."""

import asyncio
import csv
import enum
import logging
from dataclasses import dataclass
from pathlib import Path

import httpx
from google.protobuf.message import DecodeError
from google.transit import gtfs_realtime_pb2

from subway_motion.config import settings
from subway_motion.core.motion import Position

logger = logging.getLogger(__name__)


class FeedError(Exception):
    """The vehicle feed could not be fetched or decoded."""


class VehicleStatus(enum.IntEnum):
    # GTFS-Realtime VehiclePosition.VehicleStopStatus
    INCOMING_AT = 0
    STOPPED_AT = 1
    IN_TRANSIT_TO = 2

    @classmethod
    def parse(cls, raw) -> "VehicleStatus":
        try:
            return cls(int(raw))
        except (TypeError, ValueError):
            return cls.IN_TRANSIT_TO


@dataclass
class VehicleFix:
    id: str
    route: str
    lat: float
    lon: float
    status: VehicleStatus = VehicleStatus.IN_TRANSIT_TO
    stop_name: str = ""

    def __post_init__(self) -> None:
        self.route = str(self.route).strip().upper()
        self.status = VehicleStatus.parse(self.status)

    @property
    def position(self) -> Position:
        return (self.lon, self.lat)


@dataclass
class StopInfo:
    name: str
    lat: float
    lon: float


class StopLookup:
    """GTFS stop id -> stop coordinates, loaded from a static ``stops.txt``."""

    def __init__(self, stops: dict[str, StopInfo] | None = None) -> None:
        self._stops = stops or {}

    @classmethod
    def from_csv(cls, path: str | Path) -> "StopLookup":
        stops: dict[str, StopInfo] = {}
        try:
            with open(path, newline="", encoding="utf-8") as fh:
                for row in csv.DictReader(fh):
                    try:
                        stop_id = (row.get("stop_id") or "").strip()
                        if not stop_id:
                            continue
                        stops[stop_id] = StopInfo(
                            name=(row.get("stop_name") or "").strip(),
                            lat=float(row["stop_lat"]),
                            lon=float(row["stop_lon"]),
                        )
                    except (KeyError, ValueError, TypeError):
                        continue
        except OSError:
            logger.exception("Failed to read stops from %s", path)
            return cls()
        logger.info("Loaded %d stops from %s", len(stops), path)
        return cls(stops)

    def get(self, stop_id: str) -> StopInfo | None:
        return self._stops.get(stop_id)

    def __len__(self) -> int:
        return len(self._stops)


def decode_fixes(payload: bytes, stops: StopLookup) -> list[VehicleFix]:
    """Decode one GTFS-RT FeedMessage into fixes located at the vehicle's stop."""
    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(payload)
    except DecodeError as e:
        raise FeedError(f"undecodable GTFS-RT payload: {e}") from e

    fixes = []
    for entity in feed.entity:
        if not entity.HasField("vehicle"):
            continue
        vehicle = entity.vehicle
        if not vehicle.stop_id:
            continue
        stop = stops.get(vehicle.stop_id)
        if stop is None:
            continue
        fixes.append(VehicleFix(
            id=entity.id,
            route=vehicle.trip.route_id,
            lat=stop.lat,
            lon=stop.lon,
            status=vehicle.current_status,
            stop_name=stop.name,
        ))
    return fixes


class FeedClient:
    """Fetches every configured feed concurrently and merges their fixes."""

    def __init__(self, stops: StopLookup, feed_urls: list[str] | None = None) -> None:
        self.stops = stops
        self.feed_urls = list(feed_urls if feed_urls is not None else settings.feed_urls)
        headers = {"Accept": "application/x-protobuf"}
        if settings.feed_api_key:
            headers["x-api-key"] = settings.feed_api_key
        self._client = httpx.AsyncClient(timeout=15.0, headers=headers)

    async def close(self) -> None:
        await self._client.aclose()

    async def _fetch_one(self, url: str) -> bytes:
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise FeedError(f"{url}: {type(e).__name__}: {e}") from e
        return resp.content

    async def fetch_fixes(self) -> list[VehicleFix]:
        """Fetch all feeds; a single failing feed fails the whole fetch."""
        tasks = [asyncio.ensure_future(self._fetch_one(url)) for url in self.feed_urls]
        try:
            payloads = await asyncio.gather(*tasks)
        except BaseException:
            # Abandon the other feeds once one has failed
            for task in tasks:
                task.cancel()
            raise
        fixes: list[VehicleFix] = []
        for payload in payloads:
            fixes.extend(decode_fixes(payload, self.stops))
        logger.info("Fetched %d located vehicles from %d feeds", len(fixes), len(payloads))
        return fixes

"""Load subway track geometry (GeoJSON) into a per-route segment index."""

import logging
import re
from pathlib import Path

import httpx
import orjson
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

from subway_motion.config import settings
from subway_motion.core.lines import line_color
from subway_motion.core.track_matcher import TrackIndex, TrackSegment

logger = logging.getLogger(__name__)

_SERVICE_SPLIT = re.compile(r"[- ]+")


def _flatten(geom: BaseGeometry) -> list[list[tuple[float, float]]]:
    """Multi-part geometries -> list of simple coordinate sequences."""
    if geom.geom_type == "LineString":
        return [[(c[0], c[1]) for c in geom.coords]]
    parts = []
    for part in getattr(geom, "geoms", []):
        parts.extend(_flatten(part))
    return parts


def parse_services(service: str) -> list[str]:
    return [s.strip().upper() for s in _SERVICE_SPLIT.split(service or "") if s.strip()]


def build_track_index(collection: dict) -> TrackIndex:
    """Index a FeatureCollection of track lines by service line.

    A feature's ``service`` property lists every line that runs on the track
    ("A-C", "N Q R W"). The first one is the primary line; the track is only
    attached to lines drawn in the same colour as the primary, so shared
    trackage of a different trunk does not attract matches.
    """
    index = TrackIndex()
    skipped = 0
    for feature in collection.get("features", []):
        props = feature.get("properties") or {}
        services = parse_services(props.get("service", ""))
        geometry = feature.get("geometry")
        if not services or not geometry:
            skipped += 1
            continue

        try:
            parts = _flatten(shape(geometry))
        except (ValueError, TypeError, AttributeError) as e:
            logger.debug("Skipping malformed track feature: %s", e)
            skipped += 1
            continue
        segments = [TrackSegment(p) for p in parts if len(p) >= 2]
        if not segments:
            skipped += 1
            continue

        primary_color = line_color(services[0])
        for line_key in services:
            if line_color(line_key) == primary_color:
                index.add(line_key, segments)

    logger.info(
        "Indexed %d track segments for %d lines (%d features skipped)",
        index.segment_count(), len(index.routes()), skipped,
    )
    return index


async def fetch_track_geojson(source: str | None = None) -> dict:
    """Read GeoJSON from an http(s) URL or a local file path."""
    source = source or settings.track_geojson_url
    if source.startswith(("http://", "https://")):
        async with httpx.AsyncClient(timeout=60.0, follow_redirects=True) as client:
            resp = await client.get(source)
            resp.raise_for_status()
            return orjson.loads(resp.content)
    return orjson.loads(Path(source).read_bytes())


async def load_track_index(source: str | None = None) -> TrackIndex | None:
    """Fetch and index track geometry; None when the source is unavailable."""
    try:
        collection = await fetch_track_geojson(source)
    except (httpx.HTTPError, OSError, orjson.JSONDecodeError):
        logger.exception("Failed to load track geometry from %s", source or settings.track_geojson_url)
        return None
    return build_track_index(collection)

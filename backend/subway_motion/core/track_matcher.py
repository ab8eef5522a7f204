"""Snap raw vehicle fixes onto route track segments using Shapely."""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from shapely.geometry import LineString, Point

from subway_motion.config import settings
from subway_motion.core.motion import Position

logger = logging.getLogger(__name__)

# Equirectangular plane around the network's reference latitude (metres)
LAT_M_PER_DEG = 111_320.0
LON_M_PER_DEG = 111_320.0 * math.cos(math.radians(settings.reference_latitude))


def to_plane(position: Position) -> tuple[float, float]:
    """(lon, lat) degrees -> (x, y) metres."""
    return position[0] * LON_M_PER_DEG, position[1] * LAT_M_PER_DEG


def from_plane(x: float, y: float) -> Position:
    return x / LON_M_PER_DEG, y / LAT_M_PER_DEG


def distance_m(a: Position, b: Position) -> float:
    """Straight-line distance in metres between two (lon, lat) positions."""
    dx = (b[0] - a[0]) * LON_M_PER_DEG
    dy = (b[1] - a[1]) * LAT_M_PER_DEG
    return math.sqrt(dx * dx + dy * dy)


class TrackSegment:
    """One independent polyline of a route's flattened track geometry."""

    __slots__ = ("coords", "line")

    def __init__(self, coords: Sequence[Sequence[float]]) -> None:
        if len(coords) < 2:
            raise ValueError("a track segment needs at least two vertices")
        self.coords: tuple[Position, ...] = tuple((float(c[0]), float(c[1])) for c in coords)
        self.line = LineString([to_plane(c) for c in self.coords])

    def __len__(self) -> int:
        return len(self.coords)

    def __repr__(self) -> str:
        return f"TrackSegment({len(self.coords)} vertices)"


class TrackIndex:
    """Route key -> independent track segments. Read-only once loaded."""

    def __init__(self) -> None:
        self._segments: dict[str, list[TrackSegment]] = {}

    def add(self, route: str, segments: Iterable[TrackSegment]) -> None:
        key = route.strip().upper()
        segments = list(segments)
        if not segments:
            return
        self._segments.setdefault(key, []).extend(segments)

    def segments(self, route: str) -> list[TrackSegment]:
        return self._segments.get(route.strip().upper(), [])

    def routes(self) -> list[str]:
        return sorted(self._segments)

    def segment_count(self, route: str | None = None) -> int:
        if route is not None:
            return len(self.segments(route))
        return sum(len(s) for s in self._segments.values())

    def __bool__(self) -> bool:
        return bool(self._segments)


@dataclass
class MatchResult:
    snapped: Position  # (lon, lat) on the winning segment
    segment: TrackSegment
    distance_m: float  # raw fix to winning segment


class TrackMatcher:
    """Finds the nearest track segment of a fix's route and projects onto it."""

    def __init__(self, index: TrackIndex) -> None:
        self.index = index

    def match(self, route: str, lon: float, lat: float) -> MatchResult | None:
        segments = self.index.segments(route)
        if not segments:
            return None

        point = Point(to_plane((lon, lat)))
        best = segments[0]
        best_dist = math.inf
        for segment in segments:
            dist = segment.line.distance(point)
            # Strict comparison: the first segment wins exact ties
            if dist < best_dist:
                best_dist = dist
                best = segment

        snapped = best.line.interpolate(best.line.project(point))
        return MatchResult(
            snapped=from_plane(snapped.x, snapped.y),
            segment=best,
            distance_m=best_dist,
        )

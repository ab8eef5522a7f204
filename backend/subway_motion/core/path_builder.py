"""Build timed animation paths that follow the curvature of the track.

Waypoints are spaced evenly in time by vertex index, not by arc length, so a
vehicle moves faster across long gaps between source vertices and slower
across short ones. This is a known approximation of the resampling.
"""

import datetime
import enum
import logging

from shapely.geometry import Point
from shapely.ops import substring

from subway_motion.config import settings
from subway_motion.core.motion import MotionProperty, Position
from subway_motion.core.track_matcher import TrackSegment, distance_m, from_plane, to_plane
from subway_motion.core.vehicle_store import VehicleState

logger = logging.getLogger(__name__)

_SAME_POINT_M = 0.01


class BuildResult(enum.Enum):
    REBUILT = "rebuilt"
    NOOP = "noop"  # target within the no-op threshold of the current position
    STALE = "stale"  # current position could not be resolved


def animation_duration(
    distance: float,
    speed_mps: float = settings.average_speed_mps,
    min_seconds: float = settings.min_animation_seconds,
) -> float:
    """Seconds to animate over ``distance`` metres at the average speed."""
    return max(min_seconds, distance / speed_mps)


def slice_track(segment: TrackSegment, start: Position, stop: Position) -> list[Position]:
    """Vertices of ``segment`` between the points nearest ``start`` and ``stop``.

    The slice is returned in the segment's own vertex order, bounded by the
    two projected points.
    """
    line = segment.line
    d_start = line.project(Point(to_plane(start)))
    d_stop = line.project(Point(to_plane(stop)))
    lo, hi = sorted((d_start, d_stop))
    piece = substring(line, lo, hi)

    # Drop repeats where a projection lands on a vertex
    points: list[tuple[float, float]] = []
    for x, y in piece.coords:
        if points and abs(x - points[-1][0]) < _SAME_POINT_M and abs(y - points[-1][1]) < _SAME_POINT_M:
            continue
        points.append((x, y))
    return [from_plane(x, y) for x, y in points]


def orient_slice(coords: list[Position], current: Position, target: Position) -> list[Position]:
    """Reverse the slice when it runs against the direction of travel."""
    if len(coords) < 2:
        return coords
    cx, cy = to_plane(current)
    tx, ty = to_plane(target)
    ax, ay = to_plane(coords[0])
    bx, by = to_plane(coords[1])
    dot = (tx - cx) * (bx - ax) + (ty - cy) * (by - ay)
    if dot < 0:
        return coords[::-1]
    return coords


class PathBuilder:
    """Replaces a vehicle's motion with a path along its matched segment."""

    def __init__(
        self,
        noop_threshold_m: float = settings.noop_threshold_m,
        speed_mps: float = settings.average_speed_mps,
        min_seconds: float = settings.min_animation_seconds,
    ) -> None:
        self.noop_threshold_m = noop_threshold_m
        self.speed_mps = speed_mps
        self.min_seconds = min_seconds

    def build(
        self,
        state: VehicleState,
        target: Position,
        segment: TrackSegment,
        now: datetime.datetime,
    ) -> BuildResult:
        current = state.motion.value_at(now)
        if current is None:
            logger.debug("Vehicle %s: no interpolated position at %s", state.id, now)
            return BuildResult.STALE

        dist = distance_m(current, target)
        if dist < self.noop_threshold_m:
            return BuildResult.NOOP

        duration = animation_duration(dist, self.speed_mps, self.min_seconds)
        motion = MotionProperty(now, current)

        coords = orient_slice(slice_track(segment, current, target), current, target)
        if len(coords) < 2:
            # Current and target project to the same track point: move from
            # that point onto the target so an off-track vehicle rejoins the track
            on_track = segment.line.interpolate(segment.line.project(Point(to_plane(current))))
            coords = [from_plane(on_track.x, on_track.y), target]
        if len(coords) > 1:
            last = len(coords) - 1
            for i, coord in enumerate(coords):
                offset = (i / last) * duration
                motion.add_sample(now + datetime.timedelta(seconds=offset), coord)

        state.motion = motion
        state.last_track_position = target
        logger.debug(
            "Vehicle %s: %.0fm over %.1fs through %d waypoints",
            state.id, dist, duration, len(coords),
        )
        return BuildResult.REBUILT

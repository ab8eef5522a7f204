"""Map-matching and motion engine: runs one fix through the pipeline."""

import datetime
import enum
import logging
from collections import Counter
from dataclasses import dataclass

from subway_motion.config import settings
from subway_motion.core.anomaly_guard import AnomalyGuard, Verdict
from subway_motion.core.feed_client import VehicleFix
from subway_motion.core.lines import line_color
from subway_motion.core.path_builder import BuildResult, PathBuilder
from subway_motion.core.track_matcher import TrackIndex, TrackMatcher
from subway_motion.core.vehicle_store import VehicleState, VehicleStore, utcnow

logger = logging.getLogger(__name__)


class FixOutcome(enum.Enum):
    CREATED = "created"
    CREATED_RAW = "created_raw"  # new vehicle on a route without geometry
    JUMP = "jump"
    STOPPED = "stopped"
    NO_TRACK = "no_track"
    REBUILT = "rebuilt"
    NOOP = "noop"
    STALE = "stale"


_BUILD_OUTCOMES = {
    BuildResult.REBUILT: FixOutcome.REBUILT,
    BuildResult.NOOP: FixOutcome.NOOP,
    BuildResult.STALE: FixOutcome.STALE,
}

# Outcomes that hand a new motion (or a new sample) to the renderer
_PUBLISHED = {
    FixOutcome.CREATED,
    FixOutcome.CREATED_RAW,
    FixOutcome.JUMP,
    FixOutcome.STOPPED,
    FixOutcome.REBUILT,
}


@dataclass
class EntityUpdate:
    """Full-replacement registration of a vehicle with the renderer."""

    id: str
    route: str
    samples: list[dict]
    color: str
    label: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "route": self.route,
            "samples": self.samples,
            "style": {"color": self.color, "label": self.label},
        }


class MotionEngine:
    """Owns every piece of mutable tracking state.

    Track geometry is swapped in as a whole via ``set_tracks``; vehicle state
    lives in ``store``. Nothing here is shared across threads.
    """

    def __init__(self, tracks: TrackIndex | None = None) -> None:
        self.store = VehicleStore()
        self.tracks = tracks if tracks is not None else TrackIndex()
        self.matcher = TrackMatcher(self.tracks)
        self.guard = AnomalyGuard()
        self.builder = PathBuilder()
        self.outcomes: Counter[FixOutcome] = Counter()
        self._pending: dict[str, EntityUpdate] = {}

    def set_tracks(self, tracks: TrackIndex) -> None:
        self.tracks = tracks
        self.matcher = TrackMatcher(tracks)

    def process_fix(
        self,
        fix: VehicleFix,
        now: datetime.datetime,
        seen_at: datetime.datetime | None = None,
    ) -> FixOutcome:
        """Reconcile one fix with the vehicle's state at render time ``now``."""
        seen_at = seen_at or utcnow()
        state = self.store.get(fix.id)
        self.store.touch(fix.id, seen_at)

        outcome = self._process(fix, state, now, seen_at)
        self.outcomes[outcome] += 1
        if outcome in _PUBLISHED:
            self._queue_update(self.store.get(fix.id))
        return outcome

    def _process(
        self,
        fix: VehicleFix,
        state: VehicleState | None,
        now: datetime.datetime,
        seen_at: datetime.datetime,
    ) -> FixOutcome:
        if state is not None:
            state.route = fix.route

        verdict = self.guard.check(fix, state, now)
        if verdict is Verdict.JUMP:
            return FixOutcome.JUMP
        if verdict is Verdict.STOPPED:
            return FixOutcome.STOPPED

        match = self.matcher.match(fix.route, fix.lon, fix.lat)
        if match is None:
            if state is None:
                self.store.create(fix.id, fix.route, fix.position, now, seen_at)
                return FixOutcome.CREATED_RAW
            logger.debug("Vehicle %s: no track geometry for route %s", fix.id, fix.route)
            return FixOutcome.NO_TRACK

        if state is None:
            self.store.create(fix.id, fix.route, match.snapped, now, seen_at)
            return FixOutcome.CREATED

        result = self.builder.build(state, match.snapped, match.segment, now)
        return _BUILD_OUTCOMES[result]

    def _queue_update(self, state: VehicleState | None) -> None:
        if state is not None:
            self._pending[state.id] = self._entity(state)

    @staticmethod
    def _entity(state: VehicleState) -> EntityUpdate:
        return EntityUpdate(
            id=state.id,
            route=state.route,
            samples=state.motion.to_list(),
            color=line_color(state.route),
            label=state.route,
        )

    def snapshot(self) -> list[EntityUpdate]:
        return [self._entity(s) for s in self.store.values()]

    def drain_updates(self) -> list[EntityUpdate]:
        updates = list(self._pending.values())
        self._pending.clear()
        return updates

    def evict_stale(self, now: datetime.datetime | None = None) -> list[str]:
        evicted = self.store.evict_stale(now or utcnow(), settings.vehicle_ttl_seconds)
        for vid in evicted:
            self._pending.pop(vid, None)
        return evicted

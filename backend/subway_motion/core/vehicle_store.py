"""Per-vehicle tracking state owned by the motion engine."""

import datetime
import logging
from dataclasses import dataclass, field

from subway_motion.core.motion import MotionProperty, Position

logger = logging.getLogger(__name__)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass
class VehicleState:
    id: str
    route: str
    motion: MotionProperty
    last_track_position: Position | None = None
    last_seen_at: datetime.datetime = field(default_factory=utcnow)


class VehicleStore:
    """Vehicle id -> VehicleState."""

    def __init__(self) -> None:
        self._states: dict[str, VehicleState] = {}

    def get(self, vehicle_id: str) -> VehicleState | None:
        return self._states.get(vehicle_id)

    def __contains__(self, vehicle_id: str) -> bool:
        return vehicle_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def values(self) -> list[VehicleState]:
        return list(self._states.values())

    def create(
        self,
        vehicle_id: str,
        route: str,
        position: Position,
        now: datetime.datetime,
        seen_at: datetime.datetime | None = None,
    ) -> VehicleState:
        """Create state for a first sighting; an existing id is returned untouched."""
        state = self._states.get(vehicle_id)
        if state is not None:
            return state
        state = VehicleState(
            id=vehicle_id,
            route=route,
            motion=MotionProperty(now, position),
            last_track_position=position,
            last_seen_at=seen_at or utcnow(),
        )
        self._states[vehicle_id] = state
        return state

    def touch(self, vehicle_id: str, seen_at: datetime.datetime) -> None:
        state = self._states.get(vehicle_id)
        if state is not None:
            state.last_seen_at = seen_at

    def evict_stale(self, now: datetime.datetime, ttl_seconds: float) -> list[str]:
        """Drop vehicles not seen for more than ``ttl_seconds``; return their ids."""
        expired = [
            vid for vid, state in self._states.items()
            if (now - state.last_seen_at).total_seconds() > ttl_seconds
        ]
        for vid in expired:
            del self._states[vid]
        if expired:
            logger.info("Evicted %d stale vehicles", len(expired))
        return expired

"""Short-circuit fixes that should not be animated along the track."""

import datetime
import enum
import logging

from subway_motion.config import settings
from subway_motion.core.feed_client import VehicleFix, VehicleStatus
from subway_motion.core.motion import MotionProperty
from subway_motion.core.track_matcher import distance_m
from subway_motion.core.vehicle_store import VehicleState

logger = logging.getLogger(__name__)


class Verdict(enum.Enum):
    NORMAL = "normal"  # continue to track matching
    JUMP = "jump"  # id reused by another physical vehicle, position reset
    STOPPED = "stopped"  # held at the raw position


class AnomalyGuard:
    """Classifies a fix against the vehicle's last track-space position.

    A jump larger than ``jump_threshold_m`` means the feed recycled the id for
    a different train: the motion is reset to a single sample instead of
    animating a teleport. A STOPPED_AT fix pins the vehicle at its raw
    position without matching. Both mutate ``state`` and are reported as
    handled; everything else is NORMAL.
    """

    def __init__(self, jump_threshold_m: float = settings.jump_threshold_m) -> None:
        self.jump_threshold_m = jump_threshold_m

    def check(
        self,
        fix: VehicleFix,
        state: VehicleState | None,
        now: datetime.datetime,
    ) -> Verdict:
        if state is None or state.last_track_position is None:
            return Verdict.NORMAL

        raw = fix.position
        displacement = distance_m(state.last_track_position, raw)

        if displacement > self.jump_threshold_m:
            logger.debug(
                "Vehicle %s jumped %.0fm on route %s, resetting motion",
                fix.id, displacement, fix.route,
            )
            state.motion = MotionProperty(now, raw)
            state.last_track_position = raw
            return Verdict.JUMP

        if fix.status == VehicleStatus.STOPPED_AT:
            state.motion.add_sample(now, raw)
            state.last_track_position = raw
            return Verdict.STOPPED

        return Verdict.NORMAL

"""Tests for AnomalyGuard."""

import datetime

from subway_motion.core.anomaly_guard import AnomalyGuard, Verdict
from subway_motion.core.feed_client import VehicleFix, VehicleStatus
from subway_motion.core.motion import MotionProperty
from subway_motion.core.vehicle_store import VehicleState

NOW = datetime.datetime(2026, 1, 5, 12, 0, 0, tzinfo=datetime.timezone.utc)
EARLIER = NOW - datetime.timedelta(seconds=20)


def make_state(position=(-74.000, 40.700)) -> VehicleState:
    motion = MotionProperty(EARLIER, position)
    motion.add_sample(EARLIER + datetime.timedelta(seconds=40), (-74.000, 40.702))
    return VehicleState(id="t1", route="A", motion=motion, last_track_position=position)


def test_new_vehicle_is_normal():
    fix = VehicleFix(id="t1", route="A", lat=40.700, lon=-74.000)
    assert AnomalyGuard().check(fix, None, NOW) is Verdict.NORMAL


def test_state_without_track_position_is_normal():
    state = make_state()
    state.last_track_position = None
    fix = VehicleFix(id="t1", route="A", lat=40.900, lon=-74.000)
    assert AnomalyGuard().check(fix, state, NOW) is Verdict.NORMAL


def test_jump_resets_motion():
    state = make_state()
    # ~3.3km north of the last track position
    fix = VehicleFix(id="t1", route="A", lat=40.730, lon=-74.000)

    verdict = AnomalyGuard().check(fix, state, NOW)
    assert verdict is Verdict.JUMP
    assert len(state.motion) == 1
    assert state.motion.samples[0].time == NOW
    assert state.motion.samples[0].position == (-74.000, 40.730)
    assert state.last_track_position == (-74.000, 40.730)


def test_jump_takes_precedence_over_stopped():
    state = make_state()
    fix = VehicleFix(id="t1", route="A", lat=40.730, lon=-74.000, status=VehicleStatus.STOPPED_AT)
    assert AnomalyGuard().check(fix, state, NOW) is Verdict.JUMP
    assert len(state.motion) == 1


def test_stopped_appends_raw_sample():
    state = make_state()
    fix = VehicleFix(id="t1", route="A", lat=40.7005, lon=-73.9995, status=VehicleStatus.STOPPED_AT)

    verdict = AnomalyGuard().check(fix, state, NOW)
    assert verdict is Verdict.STOPPED
    assert len(state.motion) == 3
    assert state.motion.value_at(NOW) == (-73.9995, 40.7005)
    assert state.last_track_position == (-73.9995, 40.7005)


def test_moving_vehicle_is_normal_and_untouched():
    state = make_state()
    motion = state.motion
    fix = VehicleFix(id="t1", route="A", lat=40.705, lon=-74.000, status=VehicleStatus.IN_TRANSIT_TO)

    assert AnomalyGuard().check(fix, state, NOW) is Verdict.NORMAL
    assert state.motion is motion
    assert state.last_track_position == (-74.000, 40.700)


def test_threshold_is_configurable():
    state = make_state()
    fix = VehicleFix(id="t1", route="A", lat=40.705, lon=-74.000)
    assert AnomalyGuard(jump_threshold_m=100).check(fix, state, NOW) is Verdict.JUMP

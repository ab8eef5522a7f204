"""Vehicle REST API endpoints."""

from fastapi import APIRouter, HTTPException

from subway_motion.core.lines import line_color
from subway_motion.core.vehicle_store import VehicleState
from subway_motion.schemas.vehicle import MotionSampleOut, VehicleMotion, VehicleStyle

router = APIRouter(prefix="/api/vehicles", tags=["vehicles"])

# Will be set by main.py
engine = None


def _to_schema(state: VehicleState) -> VehicleMotion:
    return VehicleMotion(
        id=state.id,
        route=state.route,
        samples=[MotionSampleOut(**s) for s in state.motion.to_list()],
        style=VehicleStyle(color=line_color(state.route), label=state.route),
        last_track_position=list(state.last_track_position) if state.last_track_position else None,
        last_seen_at=state.last_seen_at.isoformat(),
    )


@router.get("", response_model=list[VehicleMotion])
async def list_vehicles(route: str | None = None):
    """Get all tracked vehicles with their current motion."""
    if engine is None:
        return []
    states = engine.store.values()
    if route:
        key = route.strip().upper()
        states = [s for s in states if s.route == key]
    return [_to_schema(s) for s in states]


@router.get("/{vehicle_id}", response_model=VehicleMotion)
async def get_vehicle(vehicle_id: str):
    """Get a specific vehicle by ID."""
    state = engine.store.get(vehicle_id) if engine is not None else None
    if state is None:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return _to_schema(state)

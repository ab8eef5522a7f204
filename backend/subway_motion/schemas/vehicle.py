from pydantic import BaseModel


class MotionSampleOut(BaseModel):
    time: str
    lon: float
    lat: float


class VehicleStyle(BaseModel):
    color: str
    label: str


class VehicleMotion(BaseModel):
    id: str
    route: str
    samples: list[MotionSampleOut]
    style: VehicleStyle
    last_track_position: list[float] | None = None  # [lon, lat]
    last_seen_at: str | None = None

from pydantic_settings import BaseSettings

_MTA_FEED_BASE = "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2F"


class Settings(BaseSettings):
    redis_url: str = "redis://localhost:6379/0"
    feed_urls: list[str] = [
        _MTA_FEED_BASE + "gtfs-ace",
        _MTA_FEED_BASE + "gtfs-g",
        _MTA_FEED_BASE + "gtfs-nqrw",
        _MTA_FEED_BASE + "gtfs",
        _MTA_FEED_BASE + "gtfs-bdfm",
        _MTA_FEED_BASE + "gtfs-jz",
        _MTA_FEED_BASE + "gtfs-l",
        _MTA_FEED_BASE + "gtfs-si",
    ]
    feed_api_key: str = ""
    stops_path: str = "data/stops.txt"
    track_geojson_url: str = "https://data.ny.gov/api/geospatial/s692-irgq?method=export&format=GeoJSON"
    poll_interval_seconds: int = 20
    track_refresh_hours: int = 24
    batch_size: int = 15
    clock_lag_seconds: float = 120.0
    vehicle_ttl_seconds: float = 300.0
    reference_latitude: float = 40.7
    jump_threshold_m: float = 2000.0
    noop_threshold_m: float = 10.0
    average_speed_mps: float = 18.0
    min_animation_seconds: float = 20.0

    model_config = {"env_prefix": "", "case_sensitive": False}


settings = Settings()

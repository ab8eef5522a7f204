"""Diagnostics API for the update pipeline."""

from dataclasses import asdict

from fastapi import APIRouter

router = APIRouter(prefix="/api/diagnostics", tags=["diagnostics"])

# Will be set by main.py
poller = None


@router.get("")
async def get_diagnostics():
    """Poll cycle stats, fix outcome counts and track coverage."""
    if poller is None:
        return {"error": "Poller not initialized"}
    engine = poller.engine
    stats = asdict(poller.stats)
    if stats["last_cycle_at"] is not None:
        stats["last_cycle_at"] = stats["last_cycle_at"].isoformat()
    return {
        "poll": stats,
        "in_flight": poller.in_flight,
        "vehicles": len(engine.store),
        "outcomes": {o.value: n for o, n in engine.outcomes.items()},
        "tracks": {
            "routes": engine.tracks.routes(),
            "segments": engine.tracks.segment_count(),
        },
    }

"""WebSocket endpoint for streaming vehicle motion updates."""

import asyncio
import logging

import orjson
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()

# Will be set by main.py on startup
broadcaster = None
engine = None


@router.websocket("/ws/vehicles")
async def vehicle_ws(websocket: WebSocket) -> None:
    """Stream full-replacement motion updates for all vehicles."""
    await websocket.accept()

    if broadcaster is None:
        await websocket.close(code=1011, reason="Service not ready")
        return

    # Snapshot first: Redis copy if available, otherwise the live engine state
    state_data = await broadcaster.get_current_state()
    if state_data is None and engine is not None:
        state_data = orjson.dumps({
            "type": "snapshot",
            "vehicles": [e.to_dict() for e in engine.snapshot()],
        })
    if state_data:
        await websocket.send_bytes(state_data)

    queue = broadcaster.subscribe()
    try:
        while True:
            data = await queue.get()
            await websocket.send_bytes(data)
    except WebSocketDisconnect:
        pass
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.exception("WebSocket error")
    finally:
        broadcaster.unsubscribe(queue)

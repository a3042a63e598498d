"""WebSocket endpoint for the live counter dashboard"""

import logging

from fastapi import APIRouter, Depends, WebSocket

from tripboard.core.dependencies import get_live_service
from tripboard.live.service import LiveCounterService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["live"])


@router.websocket("/ws")
async def counter_socket(
    websocket: WebSocket,
    live: LiveCounterService = Depends(get_live_service),
) -> None:
    await websocket.accept()
    if not await live.admit(websocket):
        return

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await live.handle(websocket, raw)
    except Exception as e:
        logger.exception(f"WebSocket handler stopped: {type(e).__name__}: {e}")
    finally:
        live.release(websocket)

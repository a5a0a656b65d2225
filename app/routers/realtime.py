import json
import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from app.core.auth import websocket_user_id
from app.realtime.relay import Relay

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


# --- REAL-TIME WEBSOCKET ENDPOINT ---

@router.websocket("/ws")
async def relay_endpoint(websocket: WebSocket):
    relay: Relay = websocket.app.state.relay

    # Unauthenticated sockets still get broadcasts and rooms but cannot bind a user
    user_id = websocket_user_id(websocket)
    await websocket.accept()
    connection_id = relay.connect(websocket, user_id=user_id)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                envelope = json.loads(data)
            except json.JSONDecodeError:
                await relay.send(connection_id, "error", {"message": "Invalid JSON"})
                continue
            await relay.dispatch(connection_id, envelope)
    except WebSocketDisconnect:
        logger.info("Client disconnected: %s", connection_id)
    finally:
        relay.disconnect(connection_id)

"""
WebSocket API Endpoint
Real-time channel traffic: subscriptions, messages, typing and presence.
"""
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query, status
import anyio
import asyncio
import logging
from typing import Optional

from teamchat.auth.jwt_handler import JWTValidationError
from teamchat.config import settings
from teamchat.models.events import make_event
from teamchat.services import Connection, get_services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


def _handshake_token(websocket: WebSocket, token: Optional[str]) -> Optional[str]:
    """Token from the query string, falling back to an Authorization header."""
    if token:
        return token
    auth = websocket.headers.get("authorization")
    if auth and auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip()
    return None


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None, description="JWT authentication token")
):
    """
    WebSocket endpoint for real-time chat.

    **Connection URL:**
    ```
    ws://your-api.com/ws?token={jwt_token}
    ```

    **Frames sent by the client:**
    ```json
    {"type": "join_channel", "data": {"channelId": 1}}
    {"type": "send_message", "data": {"channelId": 1, "content": "hi", "replyTo": null}}
    {"type": "typing", "data": {"channelId": 1, "isTyping": true}}
    ```

    **Frames sent by the server:**
    ```json
    {
        "type": "new_message",
        "timestamp": "2025-10-21T15:30:00+00:00",
        "data": {"id": 7, "channel_id": 1, "content": "hi", "username": "alice", ...}
    }
    ```

    **Connection Flow:**
    1. Client connects with JWT token
    2. Server validates token; bad or expired tokens are refused before accept
    3. Connection registered, presence updated
    4. Client events dispatched one at a time, in arrival order
    5. On disconnect the connection leaves every channel and presence is re-evaluated
    """
    raw_token = _handshake_token(websocket, token)
    if not raw_token:
        logger.warning("WebSocket connection attempt without token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    services = get_services()
    try:
        user = services.identities.verify(raw_token)
    except JWTValidationError as e:
        logger.warning(f"Invalid WebSocket token: {e}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    manager = services.manager
    connection = Connection(websocket, user)
    manager.connect(connection)
    sender_task = asyncio.create_task(connection.run_sender())

    try:
        manager.send_personal_message(
            make_event("connection_established", {
                "connectionId": connection.id,
                "user": user.public(),
            }),
            connection
        )
        await services.presence.connect(connection)

        while True:
            try:
                frame = await asyncio.wait_for(
                    websocket.receive_json(),
                    timeout=settings.WS_KEEPALIVE_SECONDS
                )
            except asyncio.TimeoutError:
                # No message received, ping to keep the connection alive
                manager.send_personal_message(make_event("ping", {"message": "keepalive"}), connection)
                continue
            except (ValueError, KeyError):
                # Binary frames have no "text" key
                logger.debug(f"Dropping non-JSON frame from {connection}")
                continue

            await services.events.dispatch(connection, frame)

    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected: user={user.username} ({user.id})")

    except RuntimeError as e:
        # Socket closed from our side (user deleted, shutdown)
        logger.info(f"WebSocket closed for user={user.username}: {e}")

    finally:
        manager.disconnect(connection)
        # Cleanup must finish even when the endpoint task is being cancelled
        with anyio.CancelScope(shield=True):
            await services.presence.disconnect(connection)
            connection.close()
            await sender_task

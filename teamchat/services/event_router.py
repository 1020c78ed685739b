"""
Event Router

Dispatch table from inbound event type to handler. Handlers deliver their
outbound events through the ConnectionManager, so they can be driven in
tests with plain Connection objects and no socket.

Failures are fire-and-forget: a rejected event is logged and dropped, no
error event is sent back.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from teamchat.exceptions import ChatError
from teamchat.models.events import (
    ChannelRef,
    DeleteMessagePayload,
    EditMessagePayload,
    SendMessagePayload,
    TypingPayload,
    make_event,
)
from teamchat.services.websocket_service import Connection

if TYPE_CHECKING:
    from teamchat.services import ChatServices

logger = logging.getLogger(__name__)

EventHandler = Callable[[Connection, Any], Awaitable[None]]


class EventRouter:

    def __init__(self, services: "ChatServices"):
        self.services = services
        self.handlers: Dict[str, EventHandler] = {
            "join_channel": self.join_channel,
            "leave_channel": self.leave_channel,
            "send_message": self.send_message,
            "edit_message": self.edit_message,
            "delete_message": self.delete_message,
            "typing": self.typing,
            "get_online_users": self.get_online_users,
            "ping": self.ping,
            "pong": self.pong,
        }

    async def dispatch(self, connection: Connection, frame: Any) -> bool:
        """
        Run the handler for one inbound frame.

        Returns:
            True if the handler completed, False if the event was dropped
        """
        if not isinstance(frame, dict):
            logger.debug(f"Dropping non-object frame from {connection}")
            return False

        event_type = frame.get("type")
        handler = self.handlers.get(event_type)
        if handler is None:
            logger.debug(f"Unknown event type {event_type!r} from {connection}")
            return False

        try:
            await handler(connection, frame.get("data"))
            return True
        except PydanticValidationError as e:
            logger.debug(f"Invalid {event_type} payload from {connection}: {e.errors()}")
        except ChatError as e:
            logger.debug(f"{event_type} from {connection} dropped: {e.message}")
        except Exception:
            logger.exception(f"Error handling {event_type} from {connection}")
        return False

    # ============ Handlers ============

    async def join_channel(self, connection: Connection, data: Any) -> None:
        payload = ChannelRef.parse(data)
        await self.services.sessions.subscribe(connection, payload.channelId)

    async def leave_channel(self, connection: Connection, data: Any) -> None:
        payload = ChannelRef.parse(data)
        self.services.sessions.unsubscribe(connection, payload.channelId)

    async def send_message(self, connection: Connection, data: Any) -> None:
        payload = SendMessagePayload.model_validate(data or {})
        await self.services.messages.post(
            connection, payload.channelId, payload.content, payload.replyTo
        )

    async def edit_message(self, connection: Connection, data: Any) -> None:
        payload = EditMessagePayload.model_validate(data or {})
        await self.services.messages.edit(
            connection, payload.messageId, payload.channelId, payload.content
        )

    async def delete_message(self, connection: Connection, data: Any) -> None:
        payload = DeleteMessagePayload.model_validate(data or {})
        await self.services.messages.delete(connection, payload.messageId, payload.channelId)

    async def typing(self, connection: Connection, data: Any) -> None:
        payload = TypingPayload.model_validate(data or {})
        await self.services.typing.set_typing(connection, payload.channelId, payload.isTyping)

    async def get_online_users(self, connection: Connection, data: Any) -> None:
        users = await self.services.presence.snapshot()
        self.services.manager.send_personal_message(make_event("online_users_list", users), connection)

    async def ping(self, connection: Connection, data: Any) -> None:
        self.services.manager.send_personal_message(make_event("pong"), connection)

    async def pong(self, connection: Connection, data: Any) -> None:
        logger.debug(f"🏓 Received pong from {connection}")

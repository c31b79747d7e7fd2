import json
import logging
from datetime import datetime
from urllib.parse import parse_qs

from channels.generic.websocket import AsyncWebsocketConsumer

from canteen_backend.exceptions import OrderValidationError
from .dispatcher import get_dispatcher
from .transports import ChannelTransport

logger = logging.getLogger(__name__)


class StudentNotificationConsumer(AsyncWebsocketConsumer):
    """
    Live order updates for a student device.

    The device identifies itself with `?device_id=` on connect or later with
    a {"type": "register_student", "deviceId": ...} message. Only the newest
    connection per device receives events.
    """

    async def connect(self):
        self.stable_id = None
        self.transport = ChannelTransport(self.channel_name)
        await self.accept()

        query_params = parse_qs(self.scope.get("query_string", b"").decode())
        device_id = (query_params.get("device_id") or [None])[0]
        if device_id:
            self._register(device_id)

        await self.send(
            text_data=json.dumps(
                {
                    "type": "connection_established",
                    "registered": self.stable_id is not None,
                    "timestamp": self.get_timestamp(),
                }
            )
        )

    async def disconnect(self, close_code):
        stable_id = get_dispatcher().unregister_session(self.transport)
        if stable_id:
            logger.info(f"Device {stable_id[:12]} disconnected ({close_code})")

    async def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or "")
        except json.JSONDecodeError:
            logger.warning(f"Invalid JSON received on {self.channel_name}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Unexpected message on {self.channel_name}: {data!r}")
            return

        message_type = data.get("type")
        if message_type == "ping":
            await self.send(text_data=json.dumps({"type": "pong", "timestamp": self.get_timestamp()}))
        elif message_type == "register_student":
            device_id = data.get("deviceId") or data.get("device_id")
            if not device_id:
                logger.warning("register_student called without deviceId")
                await self.send(
                    text_data=json.dumps({"type": "error", "message": "deviceId is required"})
                )
                return
            self._register(device_id)
            await self.send(text_data=json.dumps({"type": "registered", "timestamp": self.get_timestamp()}))
        else:
            logger.warning(f"Unknown message type on {self.channel_name}: {message_type}")

    def _register(self, device_id):
        try:
            self.stable_id = get_dispatcher().register_session(device_id, self.transport)
        except OrderValidationError:
            logger.warning(f"Rejected device id on {self.channel_name}")
            return
        logger.info(f"Device {self.stable_id[:12]} registered on {self.channel_name}")

    # Channel layer event handlers

    async def order_status(self, event):
        await self.send(text_data=json.dumps({"type": event["event"], "data": event["data"]}))

    def get_timestamp(self):
        return datetime.now().isoformat()

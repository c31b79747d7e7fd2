from dataclasses import dataclass

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer


@dataclass(frozen=True)
class ChannelTransport:
    """
    Handle on one websocket connection, addressed through the channel layer.

    Equality is by channel name, so a consumer can unregister with a fresh
    instance for its own channel.
    """

    channel_name: str

    def emit(self, event: str, payload: dict):
        """Deliver `payload` to the consumer's `order_status` handler. Fire-and-forget."""
        channel_layer = get_channel_layer()
        async_to_sync(channel_layer.send)(
            self.channel_name,
            {"type": "order.status", "event": event, "data": payload},
        )

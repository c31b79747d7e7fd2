"""
Fan-out of order status changes to the owning device.

Called after a status transition has committed. Delivery is best effort on
every channel: the live websocket gets the event directly and push is
handed to a Celery task. Nothing raised here reaches the staff action that
caused the transition.
"""
import logging
from typing import Callable, Optional

from django.apps import apps
from django.db import DatabaseError

from canteen_backend.exceptions import translate_store_errors
from .models import PushToken
from .registry import SessionRegistry

logger = logging.getLogger(__name__)

ORDER_STATUS_EVENT = "order_status_update"

STATUS_MESSAGES = {
    "PLACED": "Your order {bill} has been placed.",
    "PREPARING": "Your order {bill} is being prepared.",
    "READY": "Your order {bill} is ready for pickup!",
    "DELIVERED": "Your order {bill} has been delivered. Enjoy your meal!",
}


def build_status_payload(order) -> dict:
    message = STATUS_MESSAGES.get(order.order_status, "Your order {bill} was updated.")
    return {
        "bill_reference": order.bill_reference,
        "new_status": order.order_status,
        "message": message.format(bill=order.bill_reference),
    }


def _enqueue_push(stable_id: str, push_token: str, payload: dict):
    from .tasks import send_push_notification

    send_push_notification.delay(stable_id, push_token, payload)


class NotificationDispatcher:
    """
    Owns the device session registry and delivers status events through it.

    `push_enqueue(stable_id, push_token, payload)` hands push delivery to
    background work; it defaults to the Celery task.
    """

    def __init__(self, registry: SessionRegistry, push_enqueue: Optional[Callable] = None):
        self.registry = registry
        self._push_enqueue = push_enqueue or _enqueue_push

    def register_session(self, device_token: str, transport) -> str:
        return self.registry.register_session(device_token, transport)

    def unregister_session(self, transport) -> Optional[str]:
        return self.registry.unregister_session(transport)

    @translate_store_errors
    def register_push_token(self, device_token: str, push_token: str) -> str:
        """Opt a device in to push; the token is kept in memory and in the store."""
        stable_id = self.registry.register_push_token(device_token, push_token)
        PushToken.objects.update_or_create(device_id=stable_id, defaults={"fcm_token": push_token})
        logger.info(f"Push token stored for device {stable_id[:12]}")
        return stable_id

    def dispatch(self, order) -> dict:
        """
        Notify the device that owns `order` of its current status.

        Returns which channels were attempted. Having neither channel is not
        an error.
        """
        payload = build_status_payload(order)
        stable_id = order.device_owner
        session = self.registry.lookup(stable_id)
        attempted = {"transport": False, "push": False}

        if session is not None and session.transport is not None:
            attempted["transport"] = True
            try:
                session.transport.emit(ORDER_STATUS_EVENT, payload)
            except Exception as e:
                logger.warning(f"Live notification for order {order.bill_reference} failed: {e}", exc_info=True)

        push_token = self._current_push_token(stable_id, session)

        if push_token:
            attempted["push"] = True
            try:
                self._push_enqueue(stable_id, push_token, payload)
            except Exception as e:
                logger.error(f"Could not queue push for order {order.bill_reference}: {e}", exc_info=True)

        if not any(attempted.values()):
            logger.debug(f"No channel registered for order {order.bill_reference}, nothing sent")
        return attempted

    def _current_push_token(self, stable_id: str, session) -> Optional[str]:
        """
        The stored token is authoritative. A cached token with no matching row
        was rejected by the provider in some worker process.
        """
        cached = session.push_token if session is not None else None
        try:
            stored = PushToken.objects.filter(device_id=stable_id).values_list("fcm_token", flat=True).first()
        except DatabaseError as e:
            logger.warning(f"Push token lookup failed for device {stable_id[:12]}: {e}")
            return cached

        if cached and cached != stored:
            self.registry.forget_push_token(stable_id, cached)
            logger.info(f"Dropped stale push token for device {stable_id[:12]}")
        return stored


def get_dispatcher() -> NotificationDispatcher:
    """The process-wide dispatcher created by the notifications app."""
    return apps.get_app_config("notifications").dispatcher

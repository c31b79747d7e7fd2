import logging

from django.dispatch import receiver

from orders.signals import order_status_changed
from .dispatcher import get_dispatcher

logger = logging.getLogger(__name__)


@receiver(order_status_changed)
def notify_owner_of_status_change(sender, order, previous_status=None, **kwargs):
    logger.debug(f"Order {order.bill_reference} changed {previous_status} -> {order.order_status}")
    get_dispatcher().dispatch(order)

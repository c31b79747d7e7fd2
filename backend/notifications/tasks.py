import logging

from celery import shared_task

from .models import PushToken
from .push import PushDeliveryError, PushTokenExpired, get_push_client
from .registry import get_session_registry

logger = logging.getLogger(__name__)

PUSH_TITLE = "Order update"


@shared_task(ignore_result=True)
def send_push_notification(stable_id, push_token, payload):
    """
    Deliver one order-status push. Best effort: failures are logged and
    dropped, never retried. A token the provider reports as unregistered is
    forgotten so later transitions stop trying it.
    """
    bill_reference = payload.get("bill_reference")
    client = get_push_client()
    if client is None:
        logger.debug(f"Push skipped for {bill_reference}: no push provider configured")
        return {"status": "skipped", "bill_reference": bill_reference}

    try:
        message_name = client.send(push_token, title=PUSH_TITLE, body=payload.get("message", ""), data=payload)
    except PushTokenExpired as exc:
        deleted, _ = PushToken.objects.filter(device_id=stable_id, fcm_token=push_token).delete()
        get_session_registry().forget_push_token(stable_id, push_token)
        logger.info(f"Dropped expired push token for device {stable_id[:12]} ({exc}); {deleted} row(s) removed")
        return {"status": "expired", "bill_reference": bill_reference}
    except PushDeliveryError as exc:
        logger.warning(f"Push for order {bill_reference} failed: {exc}")
        return {"status": "failed", "bill_reference": bill_reference, "error": str(exc)}

    logger.info(f"Push sent for order {bill_reference} ({message_name})")
    return {"status": "sent", "bill_reference": bill_reference, "message_name": message_name}

"""
Identifiers handed out when an order is created: the human-facing bill
reference, the unguessable lookup token, and the QR visibility time derived
from the requested collection slot.
"""
import secrets
import uuid
from datetime import timedelta

from django.utils import timezone

from canteen_backend.utils.clock import local_now

BILL_PREFIX = "BILL"

# Requested pickup slot -> how long before the QR code is shown.
QR_DELAYS = {
    "now": timedelta(0),
    "5 minutes": timedelta(minutes=2),
    "10 minutes": timedelta(minutes=5),
    "15 minutes": timedelta(minutes=10),
}
DEFAULT_QR_DELAY = timedelta(minutes=10)


def generate_bill_reference(now=None):
    """BILL-YYYYMMDD-NNNNNN using the service-local date."""
    day = local_now(now).strftime("%Y%m%d")
    return f"{BILL_PREFIX}-{day}-{secrets.randbelow(1_000_000):06d}"


def generate_lookup_token():
    return uuid.uuid4().hex


def qr_visible_at(collection_time, now=None):
    now = now or timezone.now()
    key = (collection_time or "").strip().lower()
    return now + QR_DELAYS.get(key, DEFAULT_QR_DELAY)

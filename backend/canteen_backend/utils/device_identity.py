"""
Anonymous device identity.

Students never log in: the device token their app sends is hashed into a
stable identifier that owns their orders and keys their notification
channels.
"""
import hashlib
import re

from canteen_backend.exceptions import OrderValidationError

DIGEST_LENGTH = 64
_DIGEST_RE = re.compile(r"^[0-9a-f]{%d}$" % DIGEST_LENGTH)


def is_normalized(value) -> bool:
    """True when the value already looks like a SHA-256 hex digest."""
    return isinstance(value, str) and bool(_DIGEST_RE.match(value))


def normalize(raw_device_token: str) -> str:
    """
    Map a client-supplied device token to its stable identifier.

    Already-hashed values are returned unchanged, so clients that echo back
    the identifier they were given never get it hashed a second time.
    """
    if not isinstance(raw_device_token, str) or not raw_device_token:
        raise OrderValidationError("A device token is required.")

    if is_normalized(raw_device_token):
        return raw_device_token

    return hashlib.sha256(raw_device_token.encode("utf-8")).hexdigest()

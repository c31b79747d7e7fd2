import logging
import threading

from django.apps import apps

logger = logging.getLogger(__name__)


class CanteenStatus:
    """Whether the canteen currently accepts orders. Not persisted."""

    def __init__(self, is_open: bool = True):
        self._lock = threading.Lock()
        self._is_open = is_open

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._is_open

    def set_open(self, is_open: bool) -> bool:
        with self._lock:
            self._is_open = bool(is_open)
            value = self._is_open
        logger.info(f"Canteen marked {'open' if value else 'closed'}")
        return value

    def toggle(self) -> bool:
        with self._lock:
            self._is_open = not self._is_open
            value = self._is_open
        logger.info(f"Canteen toggled {'open' if value else 'closed'}")
        return value


def get_canteen_status() -> CanteenStatus:
    return apps.get_app_config("menu").canteen_status

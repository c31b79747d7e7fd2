"""
In-process registry of live device sessions.

One entry per stable device id, holding at most one live transport and at
most one push token. A newer connection for the same device replaces the
older one. Every read and write goes through a single lock: lookups from
the dispatch path race with connect/disconnect events from the websocket
consumers.
"""
import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from django.apps import apps

from canteen_backend.utils import device_identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceSession:
    stable_id: str
    transport: Optional[Any] = None
    push_token: Optional[str] = None

    @property
    def is_empty(self):
        return self.transport is None and self.push_token is None


class SessionRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[str, DeviceSession] = {}

    def register_session(self, device_token: str, transport) -> str:
        """Attach `transport` to the device, replacing any previous one. Returns the stable id."""
        stable_id = device_identity.normalize(device_token)
        with self._lock:
            current = self._sessions.get(stable_id) or DeviceSession(stable_id)
            replaced = current.transport is not None and current.transport != transport
            self._sessions[stable_id] = replace(current, transport=transport)
            count = len(self._sessions)
        if replaced:
            logger.info(f"Session for device {stable_id[:12]} replaced by a newer connection")
        logger.debug(f"Device {stable_id[:12]} connected ({count} registered)")
        return stable_id

    def register_push_token(self, device_token: str, push_token: str) -> str:
        stable_id = device_identity.normalize(device_token)
        with self._lock:
            current = self._sessions.get(stable_id) or DeviceSession(stable_id)
            self._sessions[stable_id] = replace(current, push_token=push_token)
        logger.debug(f"Push token registered for device {stable_id[:12]}")
        return stable_id

    def unregister_session(self, transport) -> Optional[str]:
        """
        Detach `transport` wherever it is still the registered one.

        A transport that was already replaced by a newer connection is left
        alone. The push token, if any, stays registered.
        """
        with self._lock:
            for stable_id, session in list(self._sessions.items()):
                if session.transport is None or session.transport != transport:
                    continue
                remaining = replace(session, transport=None)
                if remaining.is_empty:
                    del self._sessions[stable_id]
                else:
                    self._sessions[stable_id] = remaining
                logger.debug(f"Device {stable_id[:12]} disconnected")
                return stable_id
        return None

    def forget_push_token(self, stable_id: str, push_token: str):
        """Drop a push token the provider no longer accepts, if it is still current."""
        with self._lock:
            session = self._sessions.get(stable_id)
            if session is None or session.push_token != push_token:
                return
            remaining = replace(session, push_token=None)
            if remaining.is_empty:
                del self._sessions[stable_id]
            else:
                self._sessions[stable_id] = remaining

    def lookup(self, stable_id: str) -> Optional[DeviceSession]:
        with self._lock:
            return self._sessions.get(stable_id)

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def clear(self):
        with self._lock:
            self._sessions.clear()


def get_session_registry() -> SessionRegistry:
    """The process-wide registry created by the notifications app."""
    return apps.get_app_config("notifications").session_registry

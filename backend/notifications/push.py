"""
Firebase Cloud Messaging client (HTTP v1 API).

Credentials come from a service account; access tokens are refreshed with
google-auth when they expire. Every request is bounded by
PUSH_REQUEST_TIMEOUT so a slow provider cannot hold a worker indefinitely.
"""
import functools
import logging
import threading

import requests
from django.apps import apps
from django.conf import settings
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

FCM_SCOPES = ["https://www.googleapis.com/auth/firebase.messaging"]
FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"


class PushDeliveryError(Exception):
    """The provider could not deliver the message."""


class PushTokenExpired(PushDeliveryError):
    """The provider no longer recognizes the device token."""


class FCMPushClient:
    def __init__(self, project_id, service_account_info, timeout=5.0, session=None, credentials=None):
        self.project_id = project_id
        self.timeout = timeout
        self.session = session or requests.Session()
        self.credentials = credentials or service_account.Credentials.from_service_account_info(
            service_account_info, scopes=FCM_SCOPES
        )
        self._token_lock = threading.Lock()

    @property
    def send_url(self):
        return FCM_SEND_URL.format(project_id=self.project_id)

    def _access_token(self):
        with self._token_lock:
            if not self.credentials.valid:
                request = functools.partial(GoogleAuthRequest(), timeout=self.timeout)
                try:
                    self.credentials.refresh(request)
                except GoogleAuthError as exc:
                    raise PushDeliveryError(f"FCM access token refresh failed: {exc}") from exc
            return self.credentials.token

    def send(self, token: str, title: str, body: str, data: dict = None) -> str:
        """Send one notification. Returns the provider's message name."""
        message = {
            "message": {
                "token": token,
                "notification": {"title": title, "body": body},
                # FCM data values must be strings.
                "data": {key: str(value) for key, value in (data or {}).items()},
            }
        }
        access_token = self._access_token()
        try:
            response = self.session.post(
                self.send_url,
                json=message,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise PushDeliveryError(f"FCM request failed: {exc}") from exc

        if response.ok:
            return response.json().get("name", "")

        if self._is_unregistered(response):
            raise PushTokenExpired(f"FCM rejected token ({response.status_code})")
        raise PushDeliveryError(f"FCM returned {response.status_code}: {response.text[:200]}")

    @staticmethod
    def _is_unregistered(response) -> bool:
        if response.status_code == 404:
            return True
        try:
            error = response.json().get("error", {})
        except ValueError:
            return False
        return any(detail.get("errorCode") == "UNREGISTERED" for detail in error.get("details", []))


def build_push_client():
    """An FCM client from settings, or None when push credentials are not configured."""
    if not settings.FCM_PROJECT_ID or not settings.FIREBASE_SERVICE_ACCOUNT:
        logger.info("FCM credentials not configured, push notifications disabled")
        return None
    try:
        return FCMPushClient(
            settings.FCM_PROJECT_ID,
            settings.FIREBASE_SERVICE_ACCOUNT,
            timeout=settings.PUSH_REQUEST_TIMEOUT,
        )
    except (ValueError, KeyError) as exc:
        logger.error(f"Invalid FIREBASE_SERVICE_ACCOUNT, push notifications disabled: {exc}")
        return None


def get_push_client():
    return apps.get_app_config("notifications").push_client

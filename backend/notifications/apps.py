from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "notifications"

    def ready(self):
        from .dispatcher import NotificationDispatcher
        from .push import build_push_client
        from .registry import SessionRegistry

        # Process-scoped state, shared by the websocket consumers and the
        # request threads that commit order transitions.
        self.session_registry = SessionRegistry()
        self.dispatcher = NotificationDispatcher(self.session_registry)
        self.push_client = build_push_client()

        from . import signals  # noqa: F401

from django.apps import AppConfig


class MenuConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "menu"

    def ready(self):
        from .canteen import CanteenStatus

        # Process-scoped open/closed flag; lives as long as the worker process.
        self.canteen_status = CanteenStatus()

from django.apps import AppConfig


class CanteenBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "canteen_backend"
    verbose_name = "Canteen backend"

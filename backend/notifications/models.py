from django.db import models
from django.utils.translation import gettext_lazy as _


class PushToken(models.Model):
    """Last push token a device opted in with, so push survives a restart."""

    device_id = models.CharField(
        max_length=64, unique=True, help_text=_("Stable (hashed) device identifier")
    )
    fcm_token = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Push token")
        verbose_name_plural = _("Push tokens")

    def __str__(self):
        return f"PushToken {self.device_id[:12]}"

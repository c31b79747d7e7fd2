from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator
from django.db import models

from canteen_backend.utils.clock import combine, local_now
from menu.models import MenuItem, validate_clock_time


class Campaign(models.Model):
    """
    A percentage discount on a set of menu items, valid inside a local
    wall-clock window built from a date and an "HH:MM" time at each end.
    """

    name = models.CharField(max_length=150)
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MaxValueValidator(Decimal("100"))],
        help_text="Percentage taken off the item price, in (0, 100].",
    )
    start_date = models.DateField()
    start_time = models.CharField(max_length=5, validators=[validate_clock_time])
    end_date = models.DateField()
    end_time = models.CharField(max_length=5, validators=[validate_clock_time])
    applicable_items = models.ManyToManyField(MenuItem, blank=True, related_name="campaigns")

    # Administrative kill switch; also flipped off lazily once the window has closed.
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        # Creation order is also the tie-break between overlapping campaigns.
        ordering = ["created_at", "id"]
        indexes = [models.Index(fields=["is_active", "end_date"], name="campaign_active_end_idx")]

    def __str__(self):
        return f"{self.name} ({self.discount_percent}%)"

    def window(self) -> Tuple[datetime, datetime]:
        return combine(self.start_date, self.start_time), combine(self.end_date, self.end_time)

    def has_ended(self, now: Optional[datetime] = None) -> bool:
        return local_now(now) > self.window()[1]

    def is_currently_effective(self, now: Optional[datetime] = None) -> bool:
        """Active and inside [start, end] on the local wall clock."""
        if not self.is_active:
            return False
        start, end = self.window()
        return start <= local_now(now) <= end

    def clean(self):
        super().clean()
        errors = {}
        if self.discount_percent is not None and self.discount_percent <= 0:
            errors["discount_percent"] = "Discount must be greater than zero."
        try:
            start, end = self.window()
        except (TypeError, ValueError):
            pass
        else:
            if end < start:
                errors["end_date"] = "Campaign must end after it starts."
        if errors:
            raise ValidationError(errors)

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from canteen_backend.utils.clock import parse_clock_time


def validate_clock_time(value):
    try:
        parse_clock_time(value)
    except ValueError as exc:
        raise ValidationError(str(exc))


class MenuItem(models.Model):
    """A catalog item that can be ordered and targeted by campaigns."""

    class Category(models.TextChoices):
        BREAKFAST = "Breakfast", _("Breakfast")
        LUNCH = "Lunch", _("Lunch")
        SNACKS = "Snacks", _("Snacks")
        STATIONERY = "Stationery", _("Stationery")
        ESSENTIALS = "Essentials", _("Essentials")

    name = models.CharField(max_length=150)
    price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(0)]
    )
    category = models.CharField(max_length=50, default=Category.SNACKS)
    stock = models.PositiveIntegerField(default=0)
    image_url = models.URLField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [models.Index(fields=["category"], name="menuitem_category_idx")]

    def __str__(self):
        return f"{self.name} ({self.price})"


class ServiceHours(models.Model):
    """
    Breakfast and lunch serving windows. A single row is kept and created
    with the defaults on first read.
    """

    breakfast_start = models.CharField(max_length=5, default="08:00", validators=[validate_clock_time])
    breakfast_end = models.CharField(max_length=5, default="11:00", validators=[validate_clock_time])
    lunch_start = models.CharField(max_length=5, default="12:00", validators=[validate_clock_time])
    lunch_end = models.CharField(max_length=5, default="15:00", validators=[validate_clock_time])

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "Service hours"

    def __str__(self):
        return (
            f"Breakfast {self.breakfast_start}-{self.breakfast_end}, "
            f"Lunch {self.lunch_start}-{self.lunch_end}"
        )

    @classmethod
    def get_solo(cls):
        hours = cls.objects.order_by("pk").first()
        if hours is None:
            hours = cls.objects.create()
        return hours

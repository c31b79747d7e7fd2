import uuid

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class Order(models.Model):
    class OrderStatus(models.TextChoices):
        PLACED = "PLACED", _("Placed")
        PREPARING = "PREPARING", _("Preparing")
        READY = "READY", _("Ready")
        DELIVERED = "DELIVERED", _("Delivered")

    class PaymentStatus(models.TextChoices):
        PENDING = "PENDING", _("Pending")
        PAID = "PAID", _("Paid")
        FAILED = "FAILED", _("Failed")

    class PaymentMethod(models.TextChoices):
        RAZORPAY = "RAZORPAY", _("Razorpay")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # --- Identity ---
    bill_reference = models.CharField(max_length=32, unique=True, editable=False)
    lookup_token = models.CharField(
        max_length=64,
        unique=True,
        editable=False,
        help_text=_("Unguessable token for the public status page"),
    )

    # --- Status Fields ---
    order_status = models.CharField(
        max_length=10, choices=OrderStatus.choices, default=OrderStatus.PLACED
    )
    # Set once from the payment flow result, never changed afterwards.
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        editable=False,
    )
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.RAZORPAY
    )
    payment_id = models.CharField(max_length=100, blank=True, default="")

    # Hashed device identifier: the only ownership key, no account required.
    device_owner = models.CharField(max_length=64, db_index=True, editable=False)

    # --- Financial Fields ---
    # Snapshot taken at creation, never recomputed from the items.
    total_amount = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(0)], editable=False
    )

    # --- Pickup ---
    collection_time = models.CharField(max_length=50)
    qr_visible_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    delivered_at = models.DateTimeField(
        null=True,
        blank=True,
        editable=False,
        help_text=_("Set exactly once, when the whole bill is delivered"),
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        indexes = [
            models.Index(fields=["device_owner", "-created_at"], name="order_owner_created_idx"),
            models.Index(fields=["payment_status", "order_status", "created_at"], name="order_pay_stat_dt_idx"),
        ]

    def __str__(self):
        return f"Order {self.bill_reference} - {self.order_status}"

    @property
    def is_terminal(self):
        return self.order_status == self.OrderStatus.DELIVERED

    @property
    def status_url(self):
        base = settings.PUBLIC_BASE_URL.rstrip("/")
        return f"{base}/api/orders/status/{self.lookup_token}/"


class OrderItem(models.Model):
    """A line of an order, priced at creation and owned by that order only."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    # Display order, fixed at creation.
    position = models.PositiveIntegerField()

    item_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text=_("Catalog item the line was priced from, if any"),
    )
    name = models.CharField(max_length=150)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(
        max_digits=10, decimal_places=2, help_text=_("Price actually charged, after discount")
    )
    original_price = models.DecimalField(
        max_digits=10, decimal_places=2, help_text=_("Price before discount, for display")
    )
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=0)

    delivered = models.BooleanField(default=False)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(fields=["order", "position"], name="unique_order_item_position"),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.name}"

    @property
    def total_price(self):
        return self.unit_price * self.quantity

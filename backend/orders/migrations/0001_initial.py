import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("bill_reference", models.CharField(editable=False, max_length=32, unique=True)),
                (
                    "lookup_token",
                    models.CharField(
                        editable=False,
                        help_text="Unguessable token for the public status page",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "order_status",
                    models.CharField(
                        choices=[
                            ("PLACED", "Placed"),
                            ("PREPARING", "Preparing"),
                            ("READY", "Ready"),
                            ("DELIVERED", "Delivered"),
                        ],
                        default="PLACED",
                        max_length=10,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("PENDING", "Pending"), ("PAID", "Paid"), ("FAILED", "Failed")],
                        default="PENDING",
                        editable=False,
                        max_length=10,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(choices=[("RAZORPAY", "Razorpay")], default="RAZORPAY", max_length=20),
                ),
                ("payment_id", models.CharField(blank=True, default="", max_length=100)),
                ("device_owner", models.CharField(db_index=True, editable=False, max_length=64)),
                (
                    "total_amount",
                    models.DecimalField(
                        decimal_places=2,
                        editable=False,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                ("collection_time", models.CharField(max_length=50)),
                ("qr_visible_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "delivered_at",
                    models.DateTimeField(
                        blank=True,
                        editable=False,
                        help_text="Set exactly once, when the whole bill is delivered",
                        null=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["device_owner", "-created_at"], name="order_owner_created_idx"),
                    models.Index(
                        fields=["payment_status", "order_status", "created_at"], name="order_pay_stat_dt_idx"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveIntegerField()),
                (
                    "item_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Catalog item the line was priced from, if any",
                        max_length=64,
                    ),
                ),
                ("name", models.CharField(max_length=150)),
                (
                    "quantity",
                    models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)]),
                ),
                (
                    "unit_price",
                    models.DecimalField(
                        decimal_places=2, help_text="Price actually charged, after discount", max_digits=10
                    ),
                ),
                (
                    "original_price",
                    models.DecimalField(decimal_places=2, help_text="Price before discount, for display", max_digits=10),
                ),
                ("discount_percent", models.DecimalField(decimal_places=2, default=0, max_digits=5)),
                ("delivered", models.BooleanField(default=False)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="items", to="orders.order"
                    ),
                ),
            ],
            options={
                "ordering": ["position"],
                "constraints": [
                    models.UniqueConstraint(fields=("order", "position"), name="unique_order_item_position"),
                ],
            },
        ),
    ]

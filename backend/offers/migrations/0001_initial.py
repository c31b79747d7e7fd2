from decimal import Decimal

import django.core.validators
from django.db import migrations, models

import menu.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("menu", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Campaign",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                (
                    "discount_percent",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Percentage taken off the item price, in (0, 100].",
                        max_digits=5,
                        validators=[django.core.validators.MaxValueValidator(Decimal("100"))],
                    ),
                ),
                ("start_date", models.DateField()),
                ("start_time", models.CharField(max_length=5, validators=[menu.models.validate_clock_time])),
                ("end_date", models.DateField()),
                ("end_time", models.CharField(max_length=5, validators=[menu.models.validate_clock_time])),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "applicable_items",
                    models.ManyToManyField(blank=True, related_name="campaigns", to="menu.menuitem"),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [models.Index(fields=["is_active", "end_date"], name="campaign_active_end_idx")],
            },
        ),
    ]

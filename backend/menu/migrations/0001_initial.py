import django.core.validators
from django.db import migrations, models

import menu.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="MenuItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                ("category", models.CharField(default="Snacks", max_length=50)),
                ("stock", models.PositiveIntegerField(default=0)),
                ("image_url", models.URLField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "indexes": [models.Index(fields=["category"], name="menuitem_category_idx")],
            },
        ),
        migrations.CreateModel(
            name="ServiceHours",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("breakfast_start", models.CharField(default="08:00", max_length=5, validators=[menu.models.validate_clock_time])),
                ("breakfast_end", models.CharField(default="11:00", max_length=5, validators=[menu.models.validate_clock_time])),
                ("lunch_start", models.CharField(default="12:00", max_length=5, validators=[menu.models.validate_clock_time])),
                ("lunch_end", models.CharField(default="15:00", max_length=5, validators=[menu.models.validate_clock_time])),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name_plural": "Service hours",
            },
        ),
    ]

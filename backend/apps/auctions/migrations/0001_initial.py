import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Lot",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "starting_price",
                    models.DecimalField(decimal_places=2, max_digits=12),
                ),
                (
                    "current_price",
                    models.DecimalField(decimal_places=2, max_digits=12),
                ),
                ("unit", models.CharField(default="lot", max_length=32)),
                (
                    "available_quantity",
                    models.CharField(blank=True, default="", max_length=64),
                ),
                ("location", models.CharField(blank=True, default="", max_length=128)),
                ("image", models.TextField(blank=True, default="")),
                (
                    "start_time",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("end_time", models.DateTimeField()),
                ("total_bids", models.PositiveIntegerField(default=0)),
                ("is_trending", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "created_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("-is_trending", "end_time"),
                "indexes": [
                    models.Index(
                        fields=["is_active", "end_time"], name="lot_active_end_idx"
                    ),
                ],
            },
        ),
    ]

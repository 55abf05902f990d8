import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("carts", "0001_initial"),
    ]

    operations = [
        migrations.DeleteModel(name="CartMerge"),
        migrations.CreateModel(
            name="CartMergeReceipt",
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
                ("line_key", models.CharField(max_length=100)),
                ("quantity", models.PositiveIntegerField()),
                (
                    "merged_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cart_merge_receipts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "cart_merge_receipts",
                "indexes": [
                    models.Index(fields=["merged_at"], name="cart_merge_receipt_age_idx")
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("owner", "line_key"),
                        name="cart_merge_receipt_unique_line",
                    )
                ],
            },
        ),
    ]

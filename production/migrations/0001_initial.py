import django.core.validators
import django.db.models.deletion
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="LivestockType",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("name", models.CharField(max_length=150, unique=True, verbose_name="Name")),
                ("code", models.SlugField(unique=True, verbose_name="Code")),
                (
                    "fcr_excellent",
                    models.DecimalField(
                        blank=True, decimal_places=3, max_digits=6, null=True, verbose_name="FCR excellent up to"
                    ),
                ),
                (
                    "fcr_good",
                    models.DecimalField(
                        blank=True, decimal_places=3, max_digits=6, null=True, verbose_name="FCR good up to"
                    ),
                ),
                (
                    "fcr_average",
                    models.DecimalField(
                        blank=True, decimal_places=3, max_digits=6, null=True, verbose_name="FCR average up to"
                    ),
                ),
                (
                    "fcr_poor",
                    models.DecimalField(
                        blank=True, decimal_places=3, max_digits=6, null=True, verbose_name="FCR below average up to"
                    ),
                ),
                (
                    "initial_weight_kg",
                    models.DecimalField(
                        blank=True,
                        decimal_places=3,
                        help_text="Used as starting weight when a batch has a single weight sample.",
                        max_digits=8,
                        null=True,
                        verbose_name="Assumed day-0 weight (kg)",
                    ),
                ),
            ],
            options={
                "verbose_name": "Livestock type",
                "verbose_name_plural": "Livestock types",
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="Batch",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("name", models.CharField(max_length=150, unique=True, verbose_name="Name")),
                ("arrival_date", models.DateField(verbose_name="Arrival date")),
                ("quantity_received", models.PositiveIntegerField(verbose_name="Quantity received")),
                ("current_stock", models.PositiveIntegerField(blank=True, verbose_name="Live birds")),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("closed", "Closed")],
                        default="active",
                        max_length=8,
                        verbose_name="Status",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "livestock_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="batches",
                        to="production.livestocktype",
                        verbose_name="Livestock type",
                    ),
                ),
            ],
            options={
                "verbose_name": "Batch",
                "verbose_name_plural": "Batches",
                "ordering": ("-arrival_date", "name"),
            },
        ),
        migrations.CreateModel(
            name="WeightRecord",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("weighing_date", models.DateField(verbose_name="Weighing date")),
                ("age_in_days", models.PositiveIntegerField(blank=True, verbose_name="Age (days)")),
                (
                    "sample_size",
                    models.PositiveIntegerField(
                        validators=[django.core.validators.MinValueValidator(1)], verbose_name="Sample size"
                    ),
                ),
                (
                    "average_weight",
                    models.DecimalField(
                        decimal_places=3,
                        max_digits=8,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="Average weight (kg)",
                    ),
                ),
                (
                    "min_weight",
                    models.DecimalField(
                        blank=True, decimal_places=3, max_digits=8, null=True, verbose_name="Minimum weight (kg)"
                    ),
                ),
                (
                    "max_weight",
                    models.DecimalField(
                        blank=True, decimal_places=3, max_digits=8, null=True, verbose_name="Maximum weight (kg)"
                    ),
                ),
                (
                    "uniformity",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=5, null=True, verbose_name="Uniformity (%)"
                    ),
                ),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "batch",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="weight_records",
                        to="production.batch",
                        verbose_name="Batch",
                    ),
                ),
                (
                    "recorded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="weight_records",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Recorded by",
                    ),
                ),
            ],
            options={
                "verbose_name": "Weight record",
                "verbose_name_plural": "Weight records",
                "ordering": ("batch", "weighing_date"),
                "constraints": [
                    models.UniqueConstraint(
                        fields=("batch", "weighing_date"), name="uniq_weight_record_per_batch_date"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="MortalityRecord",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("date", models.DateField(verbose_name="Date")),
                (
                    "count",
                    models.PositiveIntegerField(
                        validators=[django.core.validators.MinValueValidator(1)], verbose_name="Deaths"
                    ),
                ),
                ("cause", models.CharField(blank=True, max_length=150, verbose_name="Cause")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "batch",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="mortality_records",
                        to="production.batch",
                        verbose_name="Batch",
                    ),
                ),
                (
                    "recorded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="mortality_records",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Recorded by",
                    ),
                ),
            ],
            options={
                "verbose_name": "Mortality record",
                "verbose_name_plural": "Mortality records",
                "ordering": ("-date", "-created_at"),
            },
        ),
    ]

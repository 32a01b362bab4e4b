import django.core.validators
import django.db.models.deletion
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models

import inventory.models


def _stocked_lot_fields():
    return [
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        (
            "current_quantity",
            models.DecimalField(
                decimal_places=2,
                default=Decimal("0.00"),
                editable=False,
                max_digits=12,
                verbose_name="Current stock",
            ),
        ),
        (
            "opening_quantity",
            models.DecimalField(
                decimal_places=2,
                default=Decimal("0.00"),
                max_digits=12,
                validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                verbose_name="Opening stock",
            ),
        ),
        (
            "reorder_level",
            models.DecimalField(
                decimal_places=2, default=Decimal("0.00"), max_digits=12, verbose_name="Reorder level"
            ),
        ),
        (
            "unit_cost",
            models.DecimalField(
                decimal_places=2, default=Decimal("0.00"), max_digits=12, verbose_name="Unit cost"
            ),
        ),
        ("is_active", models.BooleanField(default=True, verbose_name="Active")),
    ]


def _id_field():
    return (
        "id",
        models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID"),
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("production", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="FeedSupplier",
            fields=[
                _id_field(),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=150, unique=True, verbose_name="Name")),
                ("phone", models.CharField(blank=True, max_length=40, verbose_name="Phone")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="Email")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
            ],
            options={
                "verbose_name": "Feed supplier",
                "verbose_name_plural": "Feed suppliers",
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="FeedInventory",
            fields=[
                _id_field(),
                *_stocked_lot_fields(),
                ("feed_type", models.CharField(max_length=100, verbose_name="Feed type")),
                ("feed_brand", models.CharField(blank=True, max_length=100, verbose_name="Brand")),
                (
                    "bag_weight_kg",
                    models.DecimalField(
                        decimal_places=2,
                        default=inventory.models.default_bag_weight,
                        max_digits=6,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                        verbose_name="Bag weight (kg)",
                    ),
                ),
                ("last_restock_date", models.DateField(blank=True, null=True, verbose_name="Last restock")),
                (
                    "supplier",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inventory_lots",
                        to="inventory.feedsupplier",
                        verbose_name="Supplier",
                    ),
                ),
            ],
            options={
                "verbose_name": "Feed inventory lot",
                "verbose_name_plural": "Feed inventory lots",
                "ordering": ("feed_type", "feed_brand"),
                "constraints": [
                    models.UniqueConstraint(
                        fields=("feed_type", "feed_brand"), name="uniq_feed_inventory_type_brand"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="FeedPurchase",
            fields=[
                _id_field(),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("purchase_date", models.DateField(verbose_name="Purchase date")),
                (
                    "quantity_bags",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                        verbose_name="Quantity (bags)",
                    ),
                ),
                (
                    "price_per_bag",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="Price per bag",
                    ),
                ),
                (
                    "total_cost",
                    models.DecimalField(decimal_places=2, editable=False, max_digits=14, verbose_name="Total cost"),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("paid", "Paid")],
                        default="pending",
                        max_length=10,
                        verbose_name="Payment status",
                    ),
                ),
                ("invoice_number", models.CharField(blank=True, max_length=60, verbose_name="Invoice")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                (
                    "inventory",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchases",
                        to="inventory.feedinventory",
                        verbose_name="Feed lot",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchases",
                        to="inventory.feedsupplier",
                        verbose_name="Supplier",
                    ),
                ),
                (
                    "received_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="feed_purchases_received",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Received by",
                    ),
                ),
            ],
            options={
                "verbose_name": "Feed purchase",
                "verbose_name_plural": "Feed purchases",
                "ordering": ("-purchase_date", "-created_at"),
            },
        ),
        migrations.CreateModel(
            name="FeedConsumption",
            fields=[
                _id_field(),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("consumption_date", models.DateField(verbose_name="Consumption date")),
                (
                    "quantity_bags",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                        verbose_name="Quantity (bags)",
                    ),
                ),
                (
                    "price_per_bag",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="Price per bag",
                    ),
                ),
                (
                    "total_cost",
                    models.DecimalField(decimal_places=2, editable=False, max_digits=14, verbose_name="Total cost"),
                ),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                (
                    "inventory",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="consumptions",
                        to="inventory.feedinventory",
                        verbose_name="Feed lot",
                    ),
                ),
                (
                    "batch",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="feed_consumptions",
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
                        related_name="feed_consumptions_recorded",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Recorded by",
                    ),
                ),
            ],
            options={
                "verbose_name": "Feed consumption",
                "verbose_name_plural": "Feed consumption",
                "ordering": ("-consumption_date", "-created_at"),
            },
        ),
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                _id_field(),
                *_stocked_lot_fields(),
                ("name", models.CharField(max_length=150, unique=True, verbose_name="Name")),
                ("category", models.CharField(blank=True, max_length=100, verbose_name="Category")),
                ("unit", models.CharField(default="unit", max_length=30, verbose_name="Unit")),
            ],
            options={
                "verbose_name": "Inventory item",
                "verbose_name_plural": "Inventory items",
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                _id_field(),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("movement_date", models.DateField(verbose_name="Date")),
                (
                    "movement_type",
                    models.CharField(
                        choices=[
                            ("purchase", "Purchase"),
                            ("adjustment", "Adjustment"),
                            ("consumption", "Consumption"),
                            ("damage", "Damage"),
                            ("return", "Return to supplier"),
                        ],
                        max_length=16,
                        verbose_name="Type",
                    ),
                ),
                (
                    "quantity",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                        verbose_name="Quantity",
                    ),
                ),
                (
                    "balance_after",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        editable=False,
                        max_digits=12,
                        verbose_name="Balance after",
                    ),
                ),
                ("reference_number", models.CharField(blank=True, max_length=60, verbose_name="Reference")),
                ("reason", models.CharField(blank=True, max_length=255, verbose_name="Reason")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="movements",
                        to="inventory.inventoryitem",
                        verbose_name="Item",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Performed by",
                    ),
                ),
            ],
            options={
                "verbose_name": "Stock movement",
                "verbose_name_plural": "Stock movements",
                "ordering": ("-movement_date", "-created_at"),
            },
        ),
    ]

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from production.models import Batch, Flock


POSITIVE_QUANTITY = MinValueValidator(Decimal("0.01"))


def default_bag_weight() -> Decimal:
    return Decimal(str(getattr(settings, "DEFAULT_BAG_WEIGHT_KG", "25")))


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class StockedLot(TimeStampedModel):
    """Stocked entity whose quantity is only ever changed by the stock ledger."""

    current_quantity = models.DecimalField(
        "Current stock",
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
    )
    opening_quantity = models.DecimalField(
        "Opening stock",
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    reorder_level = models.DecimalField(
        "Reorder level",
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    unit_cost = models.DecimalField(
        "Unit cost",
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    is_active = models.BooleanField("Active", default=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        if self._state.adding:
            self.current_quantity = self.opening_quantity
        super().save(*args, **kwargs)

    @property
    def is_below_reorder_level(self) -> bool:
        return self.current_quantity <= self.reorder_level

    @property
    def stock_value(self) -> Decimal:
        return self.current_quantity * self.unit_cost


class FeedSupplier(TimeStampedModel):
    name = models.CharField("Name", max_length=150, unique=True)
    phone = models.CharField("Phone", max_length=40, blank=True)
    email = models.EmailField("Email", blank=True)
    is_active = models.BooleanField("Active", default=True)

    class Meta:
        verbose_name = "Feed supplier"
        verbose_name_plural = "Feed suppliers"
        ordering = ("name",)

    def __str__(self) -> str:
        return self.name


class FeedInventory(StockedLot):
    feed_type = models.CharField("Feed type", max_length=100)
    feed_brand = models.CharField("Brand", max_length=100, blank=True)
    bag_weight_kg = models.DecimalField(
        "Bag weight (kg)",
        max_digits=6,
        decimal_places=2,
        default=default_bag_weight,
        validators=[POSITIVE_QUANTITY],
    )
    supplier = models.ForeignKey(
        FeedSupplier,
        on_delete=models.SET_NULL,
        related_name="inventory_lots",
        verbose_name="Supplier",
        null=True,
        blank=True,
    )
    last_restock_date = models.DateField("Last restock", null=True, blank=True)

    class Meta:
        verbose_name = "Feed inventory lot"
        verbose_name_plural = "Feed inventory lots"
        ordering = ("feed_type", "feed_brand")
        constraints = [
            models.UniqueConstraint(
                fields=("feed_type", "feed_brand"),
                name="uniq_feed_inventory_type_brand",
            )
        ]

    def __str__(self) -> str:
        if self.feed_brand:
            return f"{self.feed_type} · {self.feed_brand}"
        return self.feed_type


class FeedPurchase(TimeStampedModel):
    class PaymentStatus(models.TextChoices):
        PENDING = "pending", "Pending"
        PAID = "paid", "Paid"

    inventory = models.ForeignKey(
        FeedInventory,
        on_delete=models.PROTECT,
        related_name="purchases",
        verbose_name="Feed lot",
    )
    supplier = models.ForeignKey(
        FeedSupplier,
        on_delete=models.PROTECT,
        related_name="purchases",
        verbose_name="Supplier",
        null=True,
        blank=True,
    )
    purchase_date = models.DateField("Purchase date")
    quantity_bags = models.DecimalField(
        "Quantity (bags)", max_digits=12, decimal_places=2, validators=[POSITIVE_QUANTITY]
    )
    price_per_bag = models.DecimalField(
        "Price per bag", max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0"))]
    )
    total_cost = models.DecimalField("Total cost", max_digits=14, decimal_places=2, editable=False)
    payment_status = models.CharField(
        "Payment status",
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    invoice_number = models.CharField("Invoice", max_length=60, blank=True)
    notes = models.TextField("Notes", blank=True)
    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="feed_purchases_received",
        verbose_name="Received by",
        null=True,
        blank=True,
    )

    class Meta:
        verbose_name = "Feed purchase"
        verbose_name_plural = "Feed purchases"
        ordering = ("-purchase_date", "-created_at")

    def __str__(self) -> str:
        return f"{self.purchase_date:%Y-%m-%d} · {self.inventory} · +{self.quantity_bags}"

    def save(self, *args, **kwargs) -> None:
        self.total_cost = self.quantity_bags * self.price_per_bag
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "total_cost" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "total_cost"]
        super().save(*args, **kwargs)


class FeedConsumption(TimeStampedModel):
    class ConsumptionType(models.TextChoices):
        BATCH = "batch", "Batch"
        FLOCK = "flock", "Flock"

    inventory = models.ForeignKey(
        FeedInventory,
        on_delete=models.PROTECT,
        related_name="consumptions",
        verbose_name="Feed lot",
    )
    consumption_type = models.CharField(
        "Consumption type", max_length=5, choices=ConsumptionType.choices, default=ConsumptionType.BATCH
    )
    batch = models.ForeignKey(
        Batch,
        on_delete=models.PROTECT,
        related_name="feed_consumptions",
        verbose_name="Batch",
        null=True,
        blank=True,
    )
    flock = models.ForeignKey(
        Flock,
        on_delete=models.PROTECT,
        related_name="feed_consumptions",
        verbose_name="Flock",
        null=True,
        blank=True,
    )
    consumption_date = models.DateField("Consumption date")
    quantity_bags = models.DecimalField(
        "Quantity (bags)", max_digits=12, decimal_places=2, validators=[POSITIVE_QUANTITY]
    )
    price_per_bag = models.DecimalField(
        "Price per bag", max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0"))]
    )
    total_cost = models.DecimalField("Total cost", max_digits=14, decimal_places=2, editable=False)
    notes = models.TextField("Notes", blank=True)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="feed_consumptions_recorded",
        verbose_name="Recorded by",
        null=True,
        blank=True,
    )

    class Meta:
        verbose_name = "Feed consumption"
        verbose_name_plural = "Feed consumption"
        ordering = ("-consumption_date", "-created_at")
        constraints = [
            models.CheckConstraint(
                check=(
                    models.Q(consumption_type="batch", batch__isnull=False, flock__isnull=True)
                    | models.Q(consumption_type="flock", flock__isnull=False, batch__isnull=True)
                ),
                name="feed_consumption_single_fed_group",
            )
        ]

    def __str__(self) -> str:
        return f"{self.consumption_date:%Y-%m-%d} · {self.fed_group} · -{self.quantity_bags}"

    @property
    def fed_group(self) -> Batch | Flock | None:
        if self.consumption_type == self.ConsumptionType.FLOCK:
            return self.flock
        return self.batch

    def save(self, *args, **kwargs) -> None:
        self.total_cost = self.quantity_bags * self.price_per_bag
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "total_cost" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "total_cost"]
        super().save(*args, **kwargs)


class InventoryItem(StockedLot):
    name = models.CharField("Name", max_length=150, unique=True)
    category = models.CharField("Category", max_length=100, blank=True)
    unit = models.CharField("Unit", max_length=30, default="unit")

    class Meta:
        verbose_name = "Inventory item"
        verbose_name_plural = "Inventory items"
        ordering = ("name",)

    def __str__(self) -> str:
        return self.name


class StockMovement(TimeStampedModel):
    class MovementType(models.TextChoices):
        PURCHASE = "purchase", "Purchase"
        ADJUSTMENT = "adjustment", "Adjustment"
        CONSUMPTION = "consumption", "Consumption"
        DAMAGE = "damage", "Damage"
        RETURN = "return", "Return to supplier"

    OUTBOUND_TYPES = frozenset({MovementType.CONSUMPTION, MovementType.DAMAGE, MovementType.RETURN})

    item = models.ForeignKey(
        InventoryItem,
        on_delete=models.PROTECT,
        related_name="movements",
        verbose_name="Item",
    )
    movement_date = models.DateField("Date")
    movement_type = models.CharField("Type", max_length=16, choices=MovementType.choices)
    quantity = models.DecimalField(
        "Quantity", max_digits=12, decimal_places=2, validators=[POSITIVE_QUANTITY]
    )
    balance_after = models.DecimalField(
        "Balance after", max_digits=12, decimal_places=2, default=Decimal("0.00"), editable=False
    )
    reference_number = models.CharField("Reference", max_length=60, blank=True)
    reason = models.CharField("Reason", max_length=255, blank=True)
    notes = models.TextField("Notes", blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="stock_movements",
        verbose_name="Performed by",
        null=True,
        blank=True,
    )

    class Meta:
        verbose_name = "Stock movement"
        verbose_name_plural = "Stock movements"
        ordering = ("-movement_date", "-created_at")

    def __str__(self) -> str:
        return f"{self.movement_date:%Y-%m-%d} · {self.item} · {self.get_movement_type_display()}"

    @property
    def is_outbound(self) -> bool:
        return self.movement_type in self.OUTBOUND_TYPES

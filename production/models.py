from datetime import date
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class LivestockType(models.Model):
    """Kind of animal reared in batches, with its feed-efficiency benchmark table."""

    name = models.CharField("Name", max_length=150, unique=True)
    code = models.SlugField("Code", max_length=50, unique=True)
    fcr_excellent = models.DecimalField(
        "FCR excellent up to",
        max_digits=6,
        decimal_places=3,
        null=True,
        blank=True,
    )
    fcr_good = models.DecimalField(
        "FCR good up to",
        max_digits=6,
        decimal_places=3,
        null=True,
        blank=True,
    )
    fcr_average = models.DecimalField(
        "FCR average up to",
        max_digits=6,
        decimal_places=3,
        null=True,
        blank=True,
    )
    fcr_poor = models.DecimalField(
        "FCR below average up to",
        max_digits=6,
        decimal_places=3,
        null=True,
        blank=True,
    )
    initial_weight_kg = models.DecimalField(
        "Assumed day-0 weight (kg)",
        max_digits=8,
        decimal_places=3,
        null=True,
        blank=True,
        help_text="Used as starting weight when a batch has a single weight sample.",
    )

    class Meta:
        verbose_name = "Livestock type"
        verbose_name_plural = "Livestock types"
        ordering = ("name",)

    def __str__(self) -> str:
        return self.name

    @property
    def benchmark_thresholds(self) -> tuple[Decimal, Decimal, Decimal, Decimal] | None:
        values = (self.fcr_excellent, self.fcr_good, self.fcr_average, self.fcr_poor)
        if any(value is None for value in values):
            return None
        return values  # type: ignore[return-value]

    def clean(self) -> None:
        super().clean()
        thresholds = [self.fcr_excellent, self.fcr_good, self.fcr_average, self.fcr_poor]
        provided = [value for value in thresholds if value is not None]
        if provided and len(provided) != len(thresholds):
            raise ValidationError("Provide all four FCR thresholds or none of them.")
        if provided and provided != sorted(provided):
            raise ValidationError("FCR thresholds must be in ascending order.")


class Batch(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        CLOSED = "closed", "Closed"

    name = models.CharField("Name", max_length=150, unique=True)
    livestock_type = models.ForeignKey(
        LivestockType,
        on_delete=models.PROTECT,
        related_name="batches",
        verbose_name="Livestock type",
    )
    arrival_date = models.DateField("Arrival date")
    quantity_received = models.PositiveIntegerField("Quantity received")
    current_stock = models.PositiveIntegerField("Live birds", blank=True)
    status = models.CharField(
        "Status", max_length=8, choices=Status.choices, default=Status.ACTIVE
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Batch"
        verbose_name_plural = "Batches"
        ordering = ("-arrival_date", "name")

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs) -> None:
        if self.current_stock is None:
            self.current_stock = self.quantity_received
        previous_arrival = None
        if self.pk:
            previous_arrival = (
                Batch.objects.filter(pk=self.pk).values_list("arrival_date", flat=True).first()
            )
        super().save(*args, **kwargs)
        if previous_arrival is not None and previous_arrival != self.arrival_date:
            for record in self.weight_records.all():
                record.batch = self
                record.save(update_fields=("age_in_days", "updated_at"))

    def age_in_days(self, on_date: date | None = None) -> int:
        on_date = on_date or timezone.localdate()
        return max((on_date - self.arrival_date).days, 0)


class Flock(models.Model):
    """Long-lived laying or rearing flock, fed from the same feed lots as batches."""

    class FlockType(models.TextChoices):
        LAYERS = "layers", "Layers"
        PULLETS = "pullets", "Pullets"

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        DECLINING = "declining", "Declining"
        DEPLETED = "depleted", "Depleted"
        SOLD = "sold", "Sold"

    name = models.CharField("Name", max_length=150, unique=True)
    flock_type = models.CharField(
        "Flock type", max_length=10, choices=FlockType.choices, default=FlockType.LAYERS
    )
    breed = models.CharField("Breed", max_length=100, blank=True)
    arrival_date = models.DateField("Arrival date")
    opening_stock = models.PositiveIntegerField("Opening stock")
    current_stock = models.PositiveIntegerField("Live birds", blank=True)
    status = models.CharField(
        "Status", max_length=10, choices=Status.choices, default=Status.ACTIVE
    )
    notes = models.TextField("Notes", blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Flock"
        verbose_name_plural = "Flocks"
        ordering = ("name",)

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs) -> None:
        if self.current_stock is None:
            self.current_stock = self.opening_stock
        super().save(*args, **kwargs)


class WeightRecord(models.Model):
    """Periodic sample weighing of a batch."""

    batch = models.ForeignKey(
        Batch,
        on_delete=models.CASCADE,
        related_name="weight_records",
        verbose_name="Batch",
    )
    weighing_date = models.DateField("Weighing date")
    age_in_days = models.PositiveIntegerField("Age (days)", blank=True)
    sample_size = models.PositiveIntegerField("Sample size", validators=[MinValueValidator(1)])
    average_weight = models.DecimalField(
        "Average weight (kg)",
        max_digits=8,
        decimal_places=3,
        validators=[MinValueValidator(Decimal("0"))],
    )
    min_weight = models.DecimalField(
        "Minimum weight (kg)",
        max_digits=8,
        decimal_places=3,
        null=True,
        blank=True,
    )
    max_weight = models.DecimalField(
        "Maximum weight (kg)",
        max_digits=8,
        decimal_places=3,
        null=True,
        blank=True,
    )
    uniformity = models.DecimalField(
        "Uniformity (%)",
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
    )
    notes = models.TextField("Notes", blank=True)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="weight_records",
        verbose_name="Recorded by",
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Weight record"
        verbose_name_plural = "Weight records"
        ordering = ("batch", "weighing_date")
        constraints = [
            models.UniqueConstraint(
                fields=("batch", "weighing_date"),
                name="uniq_weight_record_per_batch_date",
            )
        ]

    def __str__(self) -> str:
        return f"{self.batch} · {self.weighing_date:%Y-%m-%d} · {self.average_weight} kg"

    def clean(self) -> None:
        super().clean()
        if self.min_weight is not None and self.max_weight is not None and self.min_weight > self.max_weight:
            raise ValidationError("The minimum weight cannot exceed the maximum weight.")
        if self.batch_id and self.weighing_date and self.weighing_date < self.batch.arrival_date:
            raise ValidationError("The weighing date cannot precede the batch arrival date.")

    def save(self, *args, **kwargs) -> None:
        # Age is always derived from the batch arrival.
        if self.batch_id and self.weighing_date:
            self.age_in_days = self.batch.age_in_days(self.weighing_date)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "age_in_days" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "age_in_days"]
        super().save(*args, **kwargs)


class MortalityRecord(models.Model):
    batch = models.ForeignKey(
        Batch,
        on_delete=models.CASCADE,
        related_name="mortality_records",
        verbose_name="Batch",
    )
    date = models.DateField("Date")
    count = models.PositiveIntegerField("Deaths", validators=[MinValueValidator(1)])
    cause = models.CharField("Cause", max_length=150, blank=True)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="mortality_records",
        verbose_name="Recorded by",
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Mortality record"
        verbose_name_plural = "Mortality records"
        ordering = ("-date", "-created_at")

    def __str__(self) -> str:
        return f"{self.batch} · {self.date:%Y-%m-%d} · {self.count}"

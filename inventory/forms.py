from __future__ import annotations

from decimal import Decimal
from typing import Any

from django import forms
from django.utils import timezone

from production.models import Batch, Flock

from .models import FeedConsumption, FeedInventory, FeedPurchase, FeedSupplier, InventoryItem, StockMovement
from .services import (
    FeedConsumptionService,
    FeedPurchaseService,
    StockMovementService,
    get_or_create_feed_lot,
)


class NotFutureDateMixin:
    def _clean_not_future(self, field_name: str):
        value = self.cleaned_data.get(field_name)
        if value and value > timezone.localdate():
            raise forms.ValidationError("Future dates are not allowed.")
        return value


class PositiveQuantityMixin:
    def _clean_positive(self, field_name: str) -> Decimal:
        quantity = self.cleaned_data[field_name]
        if quantity <= 0:
            raise forms.ValidationError("The quantity must be greater than zero.")
        return quantity


def _collect_changes(form: forms.Form, field_names: tuple[str, ...]) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for field_name in field_names:
        value = form.cleaned_data.get(field_name)
        if isinstance(form.fields.get(field_name), forms.CharField) and value is None:
            value = ""
        changes[field_name] = value
    return changes


class FeedPurchaseForm(NotFutureDateMixin, PositiveQuantityMixin, forms.Form):
    inventory = forms.ModelChoiceField(
        label="Feed lot",
        queryset=FeedInventory.objects.all(),
        required=False,
    )
    feed_type = forms.CharField(label="Feed type", max_length=100, required=False)
    feed_brand = forms.CharField(label="Brand", max_length=100, required=False)
    supplier = forms.ModelChoiceField(
        label="Supplier",
        queryset=FeedSupplier.objects.all(),
        required=False,
    )
    purchase_date = forms.DateField(label="Purchase date")
    quantity_bags = forms.DecimalField(label="Quantity (bags)", max_digits=12, decimal_places=2)
    price_per_bag = forms.DecimalField(
        label="Price per bag", max_digits=12, decimal_places=2, min_value=Decimal("0")
    )
    payment_status = forms.ChoiceField(
        label="Payment status",
        choices=FeedPurchase.PaymentStatus.choices,
        required=False,
    )
    invoice_number = forms.CharField(label="Invoice", max_length=60, required=False)
    notes = forms.CharField(label="Notes", required=False)

    def clean_quantity_bags(self) -> Decimal:
        return self._clean_positive("quantity_bags")

    def clean_purchase_date(self):
        return self._clean_not_future("purchase_date")

    def clean(self) -> dict[str, Any]:
        cleaned = super().clean()
        if not cleaned.get("inventory") and not (cleaned.get("feed_type") or "").strip():
            self.add_error("inventory", "Select a feed lot or provide the feed type.")
        if not cleaned.get("payment_status"):
            cleaned["payment_status"] = FeedPurchase.PaymentStatus.PENDING
        return cleaned

    def save(self, actor) -> FeedPurchase:
        cleaned = self.cleaned_data
        inventory = cleaned.get("inventory") or get_or_create_feed_lot(
            feed_type=cleaned["feed_type"],
            feed_brand=cleaned.get("feed_brand") or "",
            supplier=cleaned.get("supplier"),
        )
        return FeedPurchaseService(actor=actor).create(
            inventory=inventory,
            supplier=cleaned.get("supplier"),
            purchase_date=cleaned["purchase_date"],
            quantity_bags=cleaned["quantity_bags"],
            price_per_bag=cleaned["price_per_bag"],
            payment_status=cleaned["payment_status"],
            invoice_number=cleaned.get("invoice_number") or "",
            notes=cleaned.get("notes") or "",
        )

    def update(self, actor, purchase: FeedPurchase) -> FeedPurchase:
        changes = _collect_changes(self, FeedPurchaseService.editable_fields)
        if not changes["inventory"]:
            changes["inventory"] = get_or_create_feed_lot(
                feed_type=self.cleaned_data["feed_type"],
                feed_brand=self.cleaned_data.get("feed_brand") or "",
                supplier=self.cleaned_data.get("supplier"),
            )
        return FeedPurchaseService(actor=actor).update(purchase, **changes)


class FeedConsumptionForm(NotFutureDateMixin, PositiveQuantityMixin, forms.Form):
    inventory = forms.ModelChoiceField(label="Feed lot", queryset=FeedInventory.objects.all())
    consumption_type = forms.ChoiceField(
        label="Consumption type",
        choices=FeedConsumption.ConsumptionType.choices,
        required=False,
    )
    batch = forms.ModelChoiceField(label="Batch", queryset=Batch.objects.all(), required=False)
    flock = forms.ModelChoiceField(label="Flock", queryset=Flock.objects.all(), required=False)
    consumption_date = forms.DateField(label="Consumption date")
    quantity_bags = forms.DecimalField(label="Quantity (bags)", max_digits=12, decimal_places=2)
    price_per_bag = forms.DecimalField(
        label="Price per bag",
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0"),
        required=False,
    )
    notes = forms.CharField(label="Notes", required=False)

    def clean_quantity_bags(self) -> Decimal:
        return self._clean_positive("quantity_bags")

    def clean_consumption_date(self):
        return self._clean_not_future("consumption_date")

    def clean(self) -> dict[str, Any]:
        cleaned = super().clean()
        batch = cleaned.get("batch")
        flock = cleaned.get("flock")
        consumption_type = cleaned.get("consumption_type") or (
            FeedConsumption.ConsumptionType.FLOCK if flock else FeedConsumption.ConsumptionType.BATCH
        )
        cleaned["consumption_type"] = consumption_type
        if consumption_type == FeedConsumption.ConsumptionType.FLOCK:
            group, other, other_field = flock, batch, "batch"
        else:
            group, other, other_field = batch, flock, "flock"
        if group is None and consumption_type not in self.errors:
            self.add_error(consumption_type, f"Select the {consumption_type} that was fed.")
        if other is not None:
            self.add_error(other_field, f"A {consumption_type} consumption cannot reference a {other_field}.")
        consumption_date = cleaned.get("consumption_date")
        if group is not None and consumption_date and consumption_date < group.arrival_date:
            self.add_error("consumption_date", f"The {consumption_type} had not arrived on that date.")
        return cleaned

    def save(self, actor) -> FeedConsumption:
        cleaned = self.cleaned_data
        return FeedConsumptionService(actor=actor).create(
            inventory=cleaned["inventory"],
            batch=cleaned.get("batch"),
            flock=cleaned.get("flock"),
            consumption_date=cleaned["consumption_date"],
            quantity_bags=cleaned["quantity_bags"],
            price_per_bag=cleaned.get("price_per_bag"),
            notes=cleaned.get("notes") or "",
        )

    def update(self, actor, consumption: FeedConsumption) -> FeedConsumption:
        changes = _collect_changes(self, FeedConsumptionService.editable_fields)
        if changes["price_per_bag"] is None:
            changes.pop("price_per_bag")
        return FeedConsumptionService(actor=actor).update(consumption, **changes)


class StockMovementForm(NotFutureDateMixin, PositiveQuantityMixin, forms.Form):
    item = forms.ModelChoiceField(label="Item", queryset=InventoryItem.objects.all())
    movement_date = forms.DateField(label="Date")
    movement_type = forms.ChoiceField(label="Type", choices=StockMovement.MovementType.choices)
    quantity = forms.DecimalField(label="Quantity", max_digits=12, decimal_places=2)
    reference_number = forms.CharField(label="Reference", max_length=60, required=False)
    reason = forms.CharField(label="Reason", max_length=255, required=False)
    notes = forms.CharField(label="Notes", required=False)

    def clean_quantity(self) -> Decimal:
        return self._clean_positive("quantity")

    def clean_movement_date(self):
        return self._clean_not_future("movement_date")

    def save(self, actor) -> StockMovement:
        cleaned = self.cleaned_data
        return StockMovementService(actor=actor).create(
            item=cleaned["item"],
            movement_type=cleaned["movement_type"],
            quantity=cleaned["quantity"],
            movement_date=cleaned["movement_date"],
            reference_number=cleaned.get("reference_number") or "",
            reason=cleaned.get("reason") or "",
            notes=cleaned.get("notes") or "",
        )


class FeedConsumptionFilterForm(forms.Form):
    consumption_type = forms.ChoiceField(choices=FeedConsumption.ConsumptionType.choices, required=False)
    batch = forms.IntegerField(min_value=1, required=False)
    flock = forms.IntegerField(min_value=1, required=False)
    start_date = forms.DateField(required=False)
    end_date = forms.DateField(required=False)

    def clean(self) -> dict[str, Any]:
        cleaned = super().clean()
        start_date = cleaned.get("start_date")
        end_date = cleaned.get("end_date")
        if start_date and end_date and start_date > end_date:
            self.add_error("end_date", "The end date cannot precede the start date.")
        return cleaned

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from django.db import models, transaction

from inventory.models import (
    FeedConsumption,
    FeedInventory,
    FeedPurchase,
    FeedSupplier,
    InventoryItem,
    StockMovement,
)
from production.models import Batch, Flock

from .ledger import LedgerEntry, StockLedger

logger = logging.getLogger(__name__)


def get_or_create_feed_lot(
    *,
    feed_type: str,
    feed_brand: str = "",
    bag_weight_kg: Decimal | None = None,
    supplier: FeedSupplier | None = None,
) -> FeedInventory:
    """Return the lot for a feed type/brand, creating an empty one on first use."""
    defaults: dict[str, Any] = {"supplier": supplier}
    if bag_weight_kg is not None:
        defaults["bag_weight_kg"] = bag_weight_kg
    lot, created = FeedInventory.objects.get_or_create(
        feed_type=feed_type.strip(),
        feed_brand=(feed_brand or "").strip(),
        defaults=defaults,
    )
    if created:
        logger.info("Created feed lot %s (%s) on first purchase", lot.pk, lot)
    return lot


class LedgerRecordService:
    """Create, amend and retract a persisted ledger event and its lot together."""

    model: type[models.Model]
    editable_fields: tuple[str, ...] = ()

    def __init__(self, *, actor=None) -> None:
        self.actor = actor
        self.ledger = StockLedger(actor=actor)

    def update(self, record: models.Model, **changes: Any) -> models.Model:
        unknown = sorted(set(changes) - set(self.editable_fields))
        if unknown:
            raise ValueError(f"Fields cannot be edited: {', '.join(unknown)}")
        with transaction.atomic():
            current = self.model.objects.select_for_update().get(pk=record.pk)
            old_entry = LedgerEntry.from_record(current)
            for field_name, value in changes.items():
                setattr(current, field_name, value)
            new_entry = LedgerEntry.from_record(current)
            if new_entry != old_entry:
                self.ledger.amend(old_entry, new_entry)
            self._before_update(current)
            current.save()
        return current

    def delete(self, record: models.Model) -> None:
        with transaction.atomic():
            current = self.model.objects.select_for_update().get(pk=record.pk)
            self.ledger.retract(LedgerEntry.from_record(current))
            current.delete()

    def _before_update(self, record: models.Model) -> None:
        return None


class FeedPurchaseService(LedgerRecordService):
    model = FeedPurchase
    editable_fields = (
        "inventory",
        "supplier",
        "purchase_date",
        "quantity_bags",
        "price_per_bag",
        "payment_status",
        "invoice_number",
        "notes",
    )

    def create(
        self,
        *,
        inventory: FeedInventory,
        quantity_bags: Decimal,
        price_per_bag: Decimal,
        purchase_date: date,
        supplier: FeedSupplier | None = None,
        payment_status: str = FeedPurchase.PaymentStatus.PENDING,
        invoice_number: str = "",
        notes: str = "",
    ) -> FeedPurchase:
        with transaction.atomic():
            self.ledger.apply(LedgerEntry.purchase(inventory, quantity_bags))
            purchase = FeedPurchase.objects.create(
                inventory=inventory,
                supplier=supplier,
                purchase_date=purchase_date,
                quantity_bags=quantity_bags,
                price_per_bag=price_per_bag,
                payment_status=payment_status,
                invoice_number=invoice_number,
                notes=notes,
                received_by=self.actor,
            )
            self._refresh_lot_pricing(inventory, price_per_bag=price_per_bag, purchase_date=purchase_date)
        inventory.refresh_from_db()
        return purchase

    def update(self, record: FeedPurchase, **changes: Any) -> FeedPurchase:
        with transaction.atomic():
            previous_lot_id = FeedPurchase.objects.values_list("inventory_id", flat=True).get(pk=record.pk)
            purchase = super().update(record, **changes)
            for lot_id in sorted({previous_lot_id, purchase.inventory_id}):
                self._sync_lot_pricing(lot_id)
        return purchase

    def delete(self, record: FeedPurchase) -> None:
        with transaction.atomic():
            lot_id = FeedPurchase.objects.values_list("inventory_id", flat=True).get(pk=record.pk)
            super().delete(record)
            self._sync_lot_pricing(lot_id)

    def _sync_lot_pricing(self, lot_id: int) -> None:
        """Take unit cost and restock date from the lot's most recent remaining purchase."""
        latest = (
            FeedPurchase.objects.filter(inventory_id=lot_id)
            .order_by("-purchase_date", "-created_at", "-pk")
            .first()
        )
        if latest is None:
            return
        lot = FeedInventory.objects.select_for_update().get(pk=lot_id)
        lot.unit_cost = latest.price_per_bag
        lot.last_restock_date = latest.purchase_date
        lot.save(update_fields=["unit_cost", "last_restock_date", "updated_at"])

    def _refresh_lot_pricing(self, inventory: FeedInventory, *, price_per_bag: Decimal, purchase_date: date) -> None:
        lot = FeedInventory.objects.select_for_update().get(pk=inventory.pk)
        lot.unit_cost = price_per_bag
        update_fields = ["unit_cost", "updated_at"]
        if lot.last_restock_date is None or purchase_date >= lot.last_restock_date:
            lot.last_restock_date = purchase_date
            update_fields.append("last_restock_date")
        lot.save(update_fields=update_fields)


class FeedConsumptionService(LedgerRecordService):
    model = FeedConsumption
    editable_fields = (
        "inventory",
        "consumption_type",
        "batch",
        "flock",
        "consumption_date",
        "quantity_bags",
        "price_per_bag",
        "notes",
    )

    def create(
        self,
        *,
        inventory: FeedInventory,
        quantity_bags: Decimal,
        consumption_date: date,
        batch: Batch | None = None,
        flock: Flock | None = None,
        price_per_bag: Decimal | None = None,
        notes: str = "",
    ) -> FeedConsumption:
        consumption = FeedConsumption(
            inventory=inventory,
            consumption_type=(
                FeedConsumption.ConsumptionType.FLOCK if flock is not None else FeedConsumption.ConsumptionType.BATCH
            ),
            batch=batch,
            flock=flock,
            consumption_date=consumption_date,
            quantity_bags=quantity_bags,
            notes=notes,
            recorded_by=self.actor,
        )
        self._check_fed_group(consumption)
        with transaction.atomic():
            self.ledger.apply(LedgerEntry.consumption(inventory, quantity_bags))
            if price_per_bag is None:
                price_per_bag = FeedInventory.objects.values_list("unit_cost", flat=True).get(pk=inventory.pk)
            consumption.price_per_bag = price_per_bag
            consumption.save()
        inventory.refresh_from_db()
        return consumption

    def _before_update(self, record: models.Model) -> None:
        self._check_fed_group(record)

    @staticmethod
    def _check_fed_group(consumption: FeedConsumption) -> None:
        if consumption.consumption_type == FeedConsumption.ConsumptionType.FLOCK:
            expected, other = consumption.flock_id, consumption.batch_id
        else:
            expected, other = consumption.batch_id, consumption.flock_id
        if expected is None or other is not None:
            group = consumption.consumption_type
            raise ValueError(f"A {group} consumption must reference exactly one {group} and nothing else.")


class StockMovementService(LedgerRecordService):
    model = StockMovement
    editable_fields = (
        "movement_date",
        "movement_type",
        "quantity",
        "reference_number",
        "reason",
        "notes",
    )

    def create(
        self,
        *,
        item: InventoryItem,
        movement_type: str,
        quantity: Decimal,
        movement_date: date,
        reference_number: str = "",
        reason: str = "",
        notes: str = "",
    ) -> StockMovement:
        movement = StockMovement(
            item=item,
            movement_type=movement_type,
            quantity=quantity,
            movement_date=movement_date,
            reference_number=reference_number,
            reason=reason,
            notes=notes,
            performed_by=self.actor,
        )
        with transaction.atomic():
            movement.balance_after = self.ledger.apply(LedgerEntry.from_record(movement))
            movement.save()
        item.refresh_from_db()
        return movement

    def _before_update(self, record: models.Model) -> None:
        record.balance_after = InventoryItem.objects.values_list("current_quantity", flat=True).get(
            pk=record.item_id
        )

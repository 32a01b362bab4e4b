from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.test import TestCase

from inventory.models import FeedConsumption, FeedInventory, FeedPurchase, InventoryItem, StockMovement
from inventory.selectors import replay_quantity
from inventory.services import (
    FeedConsumptionService,
    FeedPurchaseService,
    InsufficientStock,
    RetractionWouldUnderflow,
    StockMovementService,
    get_or_create_feed_lot,
)
from production.models import Batch, Flock, LivestockType


class FeedRecordServiceTests(TestCase):
    def setUp(self) -> None:
        self.user = get_user_model().objects.create_user(username="feed-clerk", password="supersecure")
        livestock_type = LivestockType.objects.create(name="Test broiler", code="test-broiler")
        self.batch = Batch.objects.create(
            name="Batch 24-01",
            livestock_type=livestock_type,
            arrival_date=date(2024, 1, 1),
            quantity_received=1000,
        )
        self.lot = FeedInventory.objects.create(
            feed_type="Broiler starter",
            feed_brand="Acme",
            opening_quantity=Decimal("100"),
            unit_cost=Decimal("28.00"),
        )
        self.other_lot = FeedInventory.objects.create(feed_type="Broiler grower", opening_quantity=Decimal("10"))
        self.purchases = FeedPurchaseService(actor=self.user)
        self.consumptions = FeedConsumptionService(actor=self.user)

    def _purchase(self, quantity: str, *, price: str = "30.00", on: date = date(2024, 1, 5)) -> FeedPurchase:
        return self.purchases.create(
            inventory=self.lot,
            quantity_bags=Decimal(quantity),
            price_per_bag=Decimal(price),
            purchase_date=on,
        )

    def _consume(self, quantity: str, *, lot: FeedInventory | None = None) -> FeedConsumption:
        return self.consumptions.create(
            inventory=lot or self.lot,
            batch=self.batch,
            quantity_bags=Decimal(quantity),
            consumption_date=date(2024, 1, 10),
        )

    def _quantity(self, lot: FeedInventory) -> Decimal:
        lot.refresh_from_db()
        return lot.current_quantity

    def test_purchase_updates_stock_and_lot_pricing(self) -> None:
        purchase = self._purchase("50", price="30.50")

        self.assertEqual(purchase.total_cost, Decimal("1525.00"))
        self.assertEqual(purchase.received_by, self.user)
        self.assertEqual(self._quantity(self.lot), Decimal("150"))
        self.assertEqual(self.lot.unit_cost, Decimal("30.50"))
        self.assertEqual(self.lot.last_restock_date, date(2024, 1, 5))

    def test_older_purchase_keeps_latest_restock_date(self) -> None:
        self._purchase("5", on=date(2024, 1, 20))
        self._purchase("5", on=date(2024, 1, 2))

        self.lot.refresh_from_db()
        self.assertEqual(self.lot.last_restock_date, date(2024, 1, 20))

    def test_amending_latest_purchase_refreshes_lot_pricing(self) -> None:
        self._purchase("10", price="29.00", on=date(2024, 1, 3))
        latest = self._purchase("20", price="30.00", on=date(2024, 1, 8))

        self.purchases.update(latest, price_per_bag=Decimal("32.50"), purchase_date=date(2024, 1, 6))

        self.lot.refresh_from_db()
        self.assertEqual(self.lot.unit_cost, Decimal("32.50"))
        self.assertEqual(self.lot.last_restock_date, date(2024, 1, 6))

    def test_amending_older_purchase_keeps_latest_pricing(self) -> None:
        older = self._purchase("10", price="29.00", on=date(2024, 1, 3))
        self._purchase("20", price="30.00", on=date(2024, 1, 8))

        self.purchases.update(older, price_per_bag=Decimal("27.00"))

        self.lot.refresh_from_db()
        self.assertEqual(self.lot.unit_cost, Decimal("30.00"))
        self.assertEqual(self.lot.last_restock_date, date(2024, 1, 8))

    def test_deleting_latest_purchase_falls_back_to_previous_pricing(self) -> None:
        self._purchase("10", price="29.00", on=date(2024, 1, 3))
        latest = self._purchase("20", price="30.00", on=date(2024, 1, 8))

        self.purchases.delete(latest)

        self.lot.refresh_from_db()
        self.assertEqual(self.lot.unit_cost, Decimal("29.00"))
        self.assertEqual(self.lot.last_restock_date, date(2024, 1, 3))

    def test_first_purchase_creates_the_lot(self) -> None:
        lot = get_or_create_feed_lot(feed_type=" Finisher ", feed_brand="Acme")
        self.purchases.create(
            inventory=lot,
            quantity_bags=Decimal("20"),
            price_per_bag=Decimal("31.00"),
            purchase_date=date(2024, 1, 5),
        )

        self.assertEqual(lot.feed_type, "Finisher")
        self.assertEqual(lot.bag_weight_kg, Decimal("25"))
        self.assertEqual(self._quantity(lot), Decimal("20"))
        self.assertEqual(get_or_create_feed_lot(feed_type="Finisher", feed_brand="Acme"), lot)

    def test_consumption_defaults_to_lot_unit_cost(self) -> None:
        consumption = self._consume("10")

        self.assertEqual(consumption.price_per_bag, Decimal("28.00"))
        self.assertEqual(consumption.total_cost, Decimal("280.00"))
        self.assertEqual(self._quantity(self.lot), Decimal("90"))

    def test_rejected_consumption_is_not_recorded(self) -> None:
        with self.assertRaises(InsufficientStock):
            self._consume("500")

        self.assertFalse(FeedConsumption.objects.exists())
        self.assertEqual(self._quantity(self.lot), Decimal("100"))

    def test_update_consumption_amends_stock(self) -> None:
        consumption = self._consume("30")

        updated = self.consumptions.update(consumption, quantity_bags=Decimal("50"))

        self.assertEqual(updated.quantity_bags, Decimal("50"))
        self.assertEqual(updated.total_cost, Decimal("1400.00"))
        self.assertEqual(self._quantity(self.lot), Decimal("50"))

    def test_rejected_update_keeps_record_and_stock(self) -> None:
        consumption = self._consume("30")

        with self.assertRaises(InsufficientStock):
            self.consumptions.update(consumption, quantity_bags=Decimal("300"))

        consumption.refresh_from_db()
        self.assertEqual(consumption.quantity_bags, Decimal("30"))
        self.assertEqual(self._quantity(self.lot), Decimal("70"))

    def test_update_moves_consumption_to_another_lot(self) -> None:
        consumption = self._consume("30")

        self.consumptions.update(consumption, inventory=self.other_lot, quantity_bags=Decimal("4"))

        self.assertEqual(self._quantity(self.lot), Decimal("100"))
        self.assertEqual(self._quantity(self.other_lot), Decimal("6"))

    def test_flock_consumption_moves_stock(self) -> None:
        flock = Flock.objects.create(name="Layers 24-A", arrival_date=date(2023, 12, 1), opening_stock=800)

        consumption = self.consumptions.create(
            inventory=self.lot,
            flock=flock,
            quantity_bags=Decimal("12"),
            consumption_date=date(2024, 1, 10),
        )

        self.assertEqual(consumption.consumption_type, FeedConsumption.ConsumptionType.FLOCK)
        self.assertIsNone(consumption.batch)
        self.assertEqual(consumption.fed_group, flock)
        self.assertEqual(self._quantity(self.lot), Decimal("88"))
        self.assertEqual(self._quantity(self.lot), replay_quantity(self.lot))

    def test_consumption_must_name_exactly_one_group(self) -> None:
        flock = Flock.objects.create(name="Layers 24-A", arrival_date=date(2023, 12, 1), opening_stock=800)

        with self.assertRaises(ValueError):
            self.consumptions.create(
                inventory=self.lot,
                quantity_bags=Decimal("1"),
                consumption_date=date(2024, 1, 10),
            )
        with self.assertRaises(ValueError):
            self.consumptions.create(
                inventory=self.lot,
                batch=self.batch,
                flock=flock,
                quantity_bags=Decimal("1"),
                consumption_date=date(2024, 1, 10),
            )

        self.assertFalse(FeedConsumption.objects.exists())
        self.assertEqual(self._quantity(self.lot), Decimal("100"))

    def test_database_rejects_mismatched_fed_group(self) -> None:
        with self.assertRaises(IntegrityError), transaction.atomic():
            FeedConsumption.objects.create(
                inventory=self.lot,
                consumption_type=FeedConsumption.ConsumptionType.FLOCK,
                batch=self.batch,
                consumption_date=date(2024, 1, 10),
                quantity_bags=Decimal("1"),
                price_per_bag=Decimal("28.00"),
            )

    def test_update_switches_consumption_to_a_flock(self) -> None:
        flock = Flock.objects.create(name="Layers 24-A", arrival_date=date(2023, 12, 1), opening_stock=800)
        consumption = self._consume("30")

        self.consumptions.update(
            consumption,
            consumption_type=FeedConsumption.ConsumptionType.FLOCK,
            batch=None,
            flock=flock,
        )

        consumption.refresh_from_db()
        self.assertEqual(consumption.flock, flock)
        self.assertFalse(self.batch.feed_consumptions.exists())
        self.assertEqual(self._quantity(self.lot), Decimal("70"))

    def test_update_without_ledger_change_only_saves_fields(self) -> None:
        consumption = self._consume("30")

        self.consumptions.update(consumption, notes="Shed 2")

        consumption.refresh_from_db()
        self.assertEqual(consumption.notes, "Shed 2")
        self.assertEqual(self._quantity(self.lot), Decimal("70"))

    def test_update_rejects_read_only_fields(self) -> None:
        purchase = self._purchase("5")

        with self.assertRaises(ValueError):
            self.purchases.update(purchase, total_cost=Decimal("1"))

    def test_deleting_consumed_purchase_is_refused(self) -> None:
        purchase = self._purchase("50")
        self._consume("140")

        with self.assertRaises(RetractionWouldUnderflow):
            self.purchases.delete(purchase)

        self.assertTrue(FeedPurchase.objects.filter(pk=purchase.pk).exists())
        self.assertEqual(self._quantity(self.lot), Decimal("10"))

    def test_deleting_consumption_returns_stock(self) -> None:
        consumption = self._consume("30")

        self.consumptions.delete(consumption)

        self.assertFalse(FeedConsumption.objects.exists())
        self.assertEqual(self._quantity(self.lot), Decimal("100"))

    def test_stock_matches_replayed_history(self) -> None:
        first = self._purchase("40")
        second = self._purchase("15")
        consumption = self._consume("70")
        self._consume("5", lot=self.other_lot)
        self.consumptions.update(consumption, quantity_bags=Decimal("60"))
        self.purchases.update(second, inventory=self.other_lot)
        self.purchases.delete(first)

        for lot in (self.lot, self.other_lot):
            with self.subTest(lot=str(lot)):
                lot.refresh_from_db()
                self.assertEqual(lot.current_quantity, replay_quantity(lot))
                self.assertGreaterEqual(lot.current_quantity, Decimal("0"))
        self.assertEqual(self.lot.current_quantity, Decimal("40"))
        self.assertEqual(self.other_lot.current_quantity, Decimal("20"))


class StockMovementServiceTests(TestCase):
    def setUp(self) -> None:
        self.item = InventoryItem.objects.create(
            name="Nipple drinkers",
            category="Equipment",
            opening_quantity=Decimal("10"),
        )
        self.service = StockMovementService()

    def _move(self, movement_type: str, quantity: str) -> StockMovement:
        return self.service.create(
            item=self.item,
            movement_type=movement_type,
            quantity=Decimal(quantity),
            movement_date=date(2024, 3, 1),
        )

    def test_movements_record_balance_after(self) -> None:
        damage = self._move(StockMovement.MovementType.DAMAGE, "4")
        restock = self._move(StockMovement.MovementType.PURCHASE, "5")

        self.assertEqual(damage.balance_after, Decimal("6"))
        self.assertEqual(restock.balance_after, Decimal("11"))
        self.assertEqual(self.item.current_quantity, Decimal("11"))

    def test_outbound_movement_beyond_stock_is_refused(self) -> None:
        with self.assertRaises(InsufficientStock):
            self._move(StockMovement.MovementType.RETURN, "20")

        self.assertFalse(StockMovement.objects.exists())

    def test_changing_type_flips_direction(self) -> None:
        movement = self._move(StockMovement.MovementType.ADJUSTMENT, "5")

        updated = self.service.update(movement, movement_type=StockMovement.MovementType.CONSUMPTION)

        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal("5"))
        self.assertEqual(updated.balance_after, Decimal("5"))
        self.assertEqual(replay_quantity(self.item), Decimal("5"))

    def test_deleting_movement_reverses_it(self) -> None:
        movement = self._move(StockMovement.MovementType.DAMAGE, "3")

        self.service.delete(movement)

        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal("10"))

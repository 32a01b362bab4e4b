from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase

from production.models import Batch, Flock, LivestockType, WeightRecord
from production.services.batches import BatchNotFound, get_batch


class ProductionModelTests(TestCase):
    def setUp(self) -> None:
        self.livestock_type = LivestockType.objects.create(name="Test broiler", code="test-broiler")
        self.batch = Batch.objects.create(
            name="Batch 24-05",
            livestock_type=self.livestock_type,
            arrival_date=date(2024, 5, 1),
            quantity_received=1200,
        )

    def test_new_batch_starts_with_all_birds_alive(self) -> None:
        self.assertEqual(self.batch.current_stock, 1200)
        self.assertEqual(self.batch.age_in_days(date(2024, 5, 15)), 14)
        self.assertEqual(self.batch.age_in_days(date(2024, 4, 20)), 0)

    def test_new_flock_starts_with_opening_stock(self) -> None:
        flock = Flock.objects.create(name="Layers 24-A", arrival_date=date(2024, 4, 1), opening_stock=950)

        self.assertEqual(flock.current_stock, 950)
        self.assertEqual(flock.flock_type, Flock.FlockType.LAYERS)
        self.assertEqual(flock.status, Flock.Status.ACTIVE)

    def test_weight_record_derives_age_from_arrival(self) -> None:
        record = WeightRecord.objects.create(
            batch=self.batch,
            weighing_date=date(2024, 5, 8),
            sample_size=50,
            average_weight=Decimal("0.180"),
        )

        self.assertEqual(record.age_in_days, 7)

    def test_weight_record_age_follows_edited_weighing_date(self) -> None:
        record = WeightRecord.objects.create(
            batch=self.batch,
            weighing_date=date(2024, 5, 5),
            sample_size=50,
            average_weight=Decimal("0.120"),
        )

        record.weighing_date = date(2024, 5, 29)
        record.save()
        record.refresh_from_db()

        self.assertEqual(record.age_in_days, 28)

    def test_weight_record_age_recomputed_with_partial_update(self) -> None:
        record = WeightRecord.objects.create(
            batch=self.batch,
            weighing_date=date(2024, 5, 5),
            sample_size=50,
            average_weight=Decimal("0.120"),
        )

        record.weighing_date = date(2024, 5, 15)
        record.save(update_fields=["weighing_date"])
        record.refresh_from_db()

        self.assertEqual(record.age_in_days, 14)

    def test_changing_batch_arrival_recomputes_weighing_ages(self) -> None:
        record = WeightRecord.objects.create(
            batch=self.batch,
            weighing_date=date(2024, 5, 22),
            sample_size=50,
            average_weight=Decimal("0.600"),
        )
        self.assertEqual(record.age_in_days, 21)

        self.batch.arrival_date = date(2024, 5, 8)
        self.batch.save()
        record.refresh_from_db()

        self.assertEqual(record.age_in_days, 14)

    def test_one_weight_record_per_batch_and_day(self) -> None:
        WeightRecord.objects.create(
            batch=self.batch,
            weighing_date=date(2024, 5, 8),
            sample_size=50,
            average_weight=Decimal("0.180"),
        )

        with self.assertRaises(IntegrityError), transaction.atomic():
            WeightRecord.objects.create(
                batch=self.batch,
                weighing_date=date(2024, 5, 8),
                sample_size=20,
                average_weight=Decimal("0.190"),
            )

    def test_weight_record_validation(self) -> None:
        record = WeightRecord(
            batch=self.batch,
            weighing_date=date(2024, 4, 28),
            sample_size=10,
            average_weight=Decimal("0.1"),
            min_weight=Decimal("0.2"),
            max_weight=Decimal("0.1"),
        )

        with self.assertRaises(ValidationError):
            record.clean()

    def test_benchmark_thresholds_must_be_complete_and_ascending(self) -> None:
        self.assertIsNone(self.livestock_type.benchmark_thresholds)

        self.livestock_type.fcr_excellent = Decimal("1.5")
        with self.assertRaises(ValidationError):
            self.livestock_type.clean()

        self.livestock_type.fcr_good = Decimal("1.4")
        self.livestock_type.fcr_average = Decimal("1.9")
        self.livestock_type.fcr_poor = Decimal("2.1")
        with self.assertRaises(ValidationError):
            self.livestock_type.clean()

        self.livestock_type.fcr_good = Decimal("1.7")
        self.livestock_type.clean()
        self.assertEqual(
            self.livestock_type.benchmark_thresholds,
            (Decimal("1.5"), Decimal("1.7"), Decimal("1.9"), Decimal("2.1")),
        )

    def test_default_livestock_type_is_seeded(self) -> None:
        broiler = LivestockType.objects.get(code="broiler")

        self.assertEqual(broiler.initial_weight_kg, Decimal("0.045"))
        self.assertEqual(broiler.benchmark_thresholds[0], Decimal("1.6"))

    def test_get_batch(self) -> None:
        self.assertEqual(get_batch(self.batch.pk), self.batch)
        for missing in (self.batch.pk + 50, "not-a-number", None):
            with self.subTest(batch_id=missing):
                with self.assertRaises(BatchNotFound):
                    get_batch(missing)

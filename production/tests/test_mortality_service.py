from __future__ import annotations

from datetime import date

from django.test import TestCase

from production.models import Batch, LivestockType, MortalityRecord
from production.services.mortality import MortalityService, MortalityValidationError


class MortalityServiceTests(TestCase):
    def setUp(self) -> None:
        livestock_type = LivestockType.objects.create(name="Test broiler", code="test-broiler")
        self.batch = Batch.objects.create(
            name="Batch 24-04",
            livestock_type=livestock_type,
            arrival_date=date(2024, 4, 1),
            quantity_received=100,
        )
        self.service = MortalityService()

    def _live_birds(self) -> int:
        self.batch.refresh_from_db()
        return self.batch.current_stock

    def test_register_reduces_live_birds(self) -> None:
        record = self.service.register(batch=self.batch, count=3, on_date=date(2024, 4, 3), cause="Heat stress")

        self.assertEqual(record.count, 3)
        self.assertEqual(self.batch.current_stock, 97)
        self.assertEqual(self._live_birds(), 97)

    def test_update_applies_the_difference(self) -> None:
        record = self.service.register(batch=self.batch, count=5, on_date=date(2024, 4, 3))

        self.service.update(record, count=2)

        self.assertEqual(self._live_birds(), 98)
        record.refresh_from_db()
        self.assertEqual(record.count, 2)

    def test_delete_restores_live_birds(self) -> None:
        record = self.service.register(batch=self.batch, count=5, on_date=date(2024, 4, 3))

        self.service.delete(record)

        self.assertFalse(MortalityRecord.objects.exists())
        self.assertEqual(self._live_birds(), 100)

    def test_mortality_beyond_live_birds_is_refused(self) -> None:
        with self.assertRaises(MortalityValidationError) as ctx:
            self.service.register(batch=self.batch, count=101, on_date=date(2024, 4, 3))

        self.assertEqual(ctx.exception.available, 100)
        self.assertEqual(ctx.exception.requested, 101)
        self.assertFalse(MortalityRecord.objects.exists())
        self.assertEqual(self._live_birds(), 100)

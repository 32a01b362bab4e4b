from __future__ import annotations

import tempfile
from datetime import date
from decimal import Decimal
from io import StringIO
from pathlib import Path

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.urls import reverse
from openpyxl import load_workbook

from inventory.models import FeedInventory
from inventory.services import FeedConsumptionService
from production.models import Batch, LivestockType, WeightRecord
from production.services.mortality import MortalityService
from reports.services.feed_conversion import INSUFFICIENT_DATA, BatchNotFound, PerformanceTier, compute_fcr


class FeedConversionDataMixin:
    def setUp(self) -> None:
        self.livestock_type = LivestockType.objects.create(name="Test broiler", code="test-broiler")
        self.batch = Batch.objects.create(
            name="Batch 24-06",
            livestock_type=self.livestock_type,
            arrival_date=date(2024, 1, 1),
            quantity_received=2000,
        )
        lot = FeedInventory.objects.create(
            feed_type="Broiler starter",
            opening_quantity=Decimal("300"),
            unit_cost=Decimal("30.00"),
        )
        service = FeedConsumptionService()
        for day, bags in ((date(2024, 1, 10), "100"), (date(2024, 2, 1), "140")):
            service.create(inventory=lot, batch=self.batch, quantity_bags=Decimal(bags), consumption_date=day)
        self.first_weighing = WeightRecord.objects.create(
            batch=self.batch,
            weighing_date=date(2024, 1, 8),
            sample_size=50,
            average_weight=Decimal("0.200"),
        )
        WeightRecord.objects.create(
            batch=self.batch,
            weighing_date=date(2024, 2, 5),
            sample_size=50,
            average_weight=Decimal("2.000"),
        )


class ComputeFcrTests(FeedConversionDataMixin, TestCase):
    def test_report_from_stored_records(self) -> None:
        report = compute_fcr(self.batch.pk, as_of=date(2024, 2, 5))

        self.assertEqual(report.total_feed_mass_kg, Decimal("6000.00"))
        self.assertEqual(report.total_feed_cost, Decimal("7200.00"))
        self.assertEqual(report.fcr, Decimal("1.667"))
        self.assertEqual(report.performance, PerformanceTier.GOOD)
        self.assertEqual([point.age_in_days for point in report.trend], [7, 35])

    def test_moved_weighing_keeps_its_place_in_the_trend(self) -> None:
        early = WeightRecord.objects.create(
            batch=self.batch,
            weighing_date=date(2024, 1, 5),
            sample_size=50,
            average_weight=Decimal("0.150"),
        )
        early.weighing_date = date(2024, 1, 29)
        early.average_weight = Decimal("1.400")
        early.save()

        report = compute_fcr(self.batch.pk, as_of=date(2024, 2, 5))

        self.assertEqual([point.age_in_days for point in report.trend], [7, 28, 35])

    def test_livestock_type_thresholds_override_defaults(self) -> None:
        self.livestock_type.fcr_excellent = Decimal("1.2")
        self.livestock_type.fcr_good = Decimal("1.4")
        self.livestock_type.fcr_average = Decimal("1.6")
        self.livestock_type.fcr_poor = Decimal("1.65")
        self.livestock_type.save()

        report = compute_fcr(self.batch.pk, as_of=date(2024, 2, 5))

        self.assertEqual(report.performance, PerformanceTier.POOR)

    def test_mortality_reduces_total_gain(self) -> None:
        MortalityService().register(batch=self.batch, count=200, on_date=date(2024, 1, 20))

        report = compute_fcr(self.batch.pk, as_of=date(2024, 2, 5))

        self.assertEqual(report.total_weight_gain, Decimal("3240.000"))
        self.assertEqual(report.fcr, Decimal("1.852"))
        self.assertEqual(report.batch.mortality, 200)

    def test_single_weighing_is_insufficient_data(self) -> None:
        report = compute_fcr(self.batch.pk, as_of=date(2024, 1, 20))

        self.assertEqual(report.trend, [])
        self.assertIs(report.fcr, INSUFFICIENT_DATA)
        self.assertIs(report.cost_per_kg_gain, INSUFFICIENT_DATA)

    def test_unknown_batch(self) -> None:
        with self.assertRaises(BatchNotFound):
            compute_fcr(self.batch.pk + 100)


class FeedConversionApiTests(FeedConversionDataMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        user = get_user_model().objects.create_user(username="analyst", password="supersecure")
        self.client.force_login(user)

    def test_returns_report_payload(self) -> None:
        response = self.client.get(reverse("reports-api:fcr"), {"batch": self.batch.pk, "as_of": "2024-02-05"})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["metrics"]["fcr"], {"value": "1.667", "insufficient_data": False})
        self.assertEqual(payload["performance"], "Good")
        self.assertEqual(payload["batch"]["age_in_days"], 35)
        self.assertEqual(len(payload["trend"]), 2)
        self.assertTrue(payload["trend"][0]["fcr"]["insufficient_data"])
        self.assertEqual(payload["record_counts"], {"consumption": 2, "weight": 2})

    def test_insufficient_data_is_flagged(self) -> None:
        response = self.client.get(reverse("reports-api:fcr"), {"batch": self.batch.pk, "as_of": "2024-01-20"})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["metrics"]["fcr"], {"value": None, "insufficient_data": True})
        self.assertIsNone(payload["performance"])
        self.assertEqual(payload["trend"], [])

    def test_validates_parameters(self) -> None:
        self.assertEqual(self.client.get(reverse("reports-api:fcr")).status_code, 400)
        response = self.client.get(reverse("reports-api:fcr"), {"batch": self.batch.pk, "as_of": "2024-02-30"})
        self.assertEqual(response.status_code, 400)

    def test_unknown_batch_returns_not_found(self) -> None:
        response = self.client.get(reverse("reports-api:fcr"), {"batch": self.batch.pk + 100})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "batch_not_found")


class ExportFcrReportCommandTests(FeedConversionDataMixin, TestCase):
    def test_writes_summary_and_trend_sheets(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            output = Path(tmp_dir) / "report.xlsx"

            call_command("export_fcr_report", self.batch.pk, as_of="2024-02-05", output=str(output), stdout=StringIO())

            workbook = load_workbook(output)
            self.assertEqual(workbook.sheetnames, ["Summary", "Trend"])
            summary = {row[0]: row[1] for row in workbook["Summary"].iter_rows(values_only=True) if row[0]}
            self.assertAlmostEqual(summary["FCR"], 1.667)
            self.assertEqual(summary["Performance"], "Good")
            trend_rows = list(workbook["Trend"].iter_rows(values_only=True))
            self.assertEqual(len(trend_rows), 3)
            self.assertEqual(trend_rows[1][3], "Insufficient data")

    def test_unknown_batch(self) -> None:
        with self.assertRaises(CommandError):
            call_command("export_fcr_report", self.batch.pk + 100)

    def test_rejects_other_extensions(self) -> None:
        with self.assertRaises(CommandError):
            call_command("export_fcr_report", self.batch.pk, output="report.csv")

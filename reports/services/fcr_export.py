from __future__ import annotations

from decimal import Decimal
from typing import Any

from openpyxl import Workbook

from .feed_conversion import INSUFFICIENT_DATA, FCRReport

INSUFFICIENT_DATA_LABEL = "Insufficient data"

TREND_HEADERS = ("Date", "Age (days)", "Average weight (kg)", "FCR to date")


def _cell(value: Any) -> Any:
    if value is INSUFFICIENT_DATA:
        return INSUFFICIENT_DATA_LABEL
    if isinstance(value, Decimal):
        return float(value)
    return value


def build_fcr_workbook(report: FCRReport) -> Workbook:
    """Summary sheet with the aggregate metrics plus a trend sheet, one row per weighing."""
    workbook = Workbook()
    summary = workbook.active
    summary.title = "Summary"
    performance = report.performance
    rows = (
        ("Batch", report.batch.name),
        ("Livestock type", report.batch.livestock_type),
        ("As of", report.as_of),
        ("Age (days)", report.age_in_days),
        ("Birds received", report.batch.quantity_received),
        ("Live birds", report.batch.current_stock),
        ("Mortality", report.batch.mortality),
        (),
        ("Total feed (kg)", report.total_feed_mass_kg),
        ("Total feed cost", report.total_feed_cost),
        ("Initial weight (kg)", report.initial_weight),
        ("Current weight (kg)", report.current_weight),
        ("Weight gain per bird (kg)", report.weight_gain_per_bird),
        ("Total weight gain (kg)", report.total_weight_gain),
        ("FCR", report.fcr),
        ("Cost per kg gained", report.cost_per_kg_gain),
        ("Daily weight gain (kg)", report.daily_weight_gain),
        ("Performance", INSUFFICIENT_DATA_LABEL if performance is INSUFFICIENT_DATA else performance.value),
        (),
        ("Benchmark excellent", report.benchmarks.excellent),
        ("Benchmark good", report.benchmarks.good),
        ("Benchmark average", report.benchmarks.average),
        ("Benchmark poor", report.benchmarks.poor),
    )
    for row in rows:
        summary.append([_cell(value) for value in row])

    trend = workbook.create_sheet("Trend")
    trend.append(list(TREND_HEADERS))
    for point in report.trend:
        trend.append(
            [
                _cell(point.weighing_date),
                point.age_in_days,
                _cell(point.average_weight),
                _cell(point.fcr),
            ]
        )
    return workbook

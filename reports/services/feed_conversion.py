from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from django.conf import settings
from django.utils import timezone

from inventory.models import FeedConsumption
from production.models import Batch, LivestockType
from production.services.batches import BatchNotFound, get_batch

logger = logging.getLogger(__name__)

FCR_QUANTIZE = Decimal("0.001")
WEIGHT_QUANTIZE = Decimal("0.001")
MONEY_QUANTIZE = Decimal("0.01")

DEFAULT_BENCHMARK_THRESHOLDS = (Decimal("1.6"), Decimal("1.8"), Decimal("2.0"), Decimal("2.2"))


class _Sentinel(Enum):
    INSUFFICIENT_DATA = "insufficient_data"

    def __repr__(self) -> str:
        return "INSUFFICIENT_DATA"

    def __bool__(self) -> bool:
        return False


INSUFFICIENT_DATA = _Sentinel.INSUFFICIENT_DATA

Metric = Union[Decimal, _Sentinel]


class PerformanceTier(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    AVERAGE = "Average"
    BELOW_AVERAGE = "Below Average"
    POOR = "Poor"


@dataclass(frozen=True)
class BenchmarkTable:
    """Upper FCR bounds of the first four performance tiers; anything above ``poor`` is Poor."""

    excellent: Decimal
    good: Decimal
    average: Decimal
    poor: Decimal

    def __post_init__(self) -> None:
        values = [Decimal(str(value)) for value in (self.excellent, self.good, self.average, self.poor)]
        if values != sorted(values):
            raise ValueError("Benchmark thresholds must be ascending.")
        for name, value in zip(("excellent", "good", "average", "poor"), values):
            object.__setattr__(self, name, value)

    @classmethod
    def from_values(cls, values: Sequence[Any]) -> "BenchmarkTable":
        if len(values) != 4:
            raise ValueError("A benchmark table needs exactly four thresholds.")
        return cls(*values)

    def classify(self, fcr: Metric) -> PerformanceTier | _Sentinel:
        if fcr is INSUFFICIENT_DATA or fcr <= 0:
            return INSUFFICIENT_DATA
        if fcr <= self.excellent:
            return PerformanceTier.EXCELLENT
        if fcr <= self.good:
            return PerformanceTier.GOOD
        if fcr <= self.average:
            return PerformanceTier.AVERAGE
        if fcr <= self.poor:
            return PerformanceTier.BELOW_AVERAGE
        return PerformanceTier.POOR

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "excellent": self.excellent,
            "good": self.good,
            "average": self.average,
            "poor": self.poor,
        }


@dataclass(frozen=True)
class BatchSnapshot:
    batch_id: int
    name: str
    arrival_date: date
    quantity_received: int
    current_stock: int
    livestock_type: str = ""
    initial_weight_kg: Optional[Decimal] = None

    @property
    def mortality(self) -> int:
        return max(self.quantity_received - self.current_stock, 0)


@dataclass(frozen=True)
class ConsumptionRecord:
    consumed_on: date
    quantity: Decimal
    bag_weight_kg: Decimal
    price_per_bag: Decimal

    @property
    def mass_kg(self) -> Decimal:
        return self.quantity * self.bag_weight_kg

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.price_per_bag


@dataclass(frozen=True)
class WeightSampleRecord:
    weighed_on: date
    age_in_days: int
    average_weight: Decimal


@dataclass(frozen=True)
class TrendPoint:
    weighing_date: date
    age_in_days: int
    average_weight: Decimal
    fcr: Metric


@dataclass(frozen=True)
class FCRReport:
    batch: BatchSnapshot
    as_of: date
    age_in_days: int
    total_feed_mass_kg: Decimal
    total_feed_cost: Decimal
    initial_weight: Metric
    current_weight: Metric
    weight_gain_per_bird: Metric
    total_weight_gain: Metric
    fcr: Metric
    cost_per_kg_gain: Metric
    daily_weight_gain: Metric
    performance: PerformanceTier | _Sentinel
    benchmarks: BenchmarkTable
    consumption_count: int
    weight_record_count: int
    trend: list[TrendPoint] = field(default_factory=list)


def _quantize(value: Metric, step: Decimal) -> Metric:
    if value is INSUFFICIENT_DATA:
        return value
    return value.quantize(step, rounding=ROUND_HALF_UP)


def _safe_divide(numerator: Decimal, denominator: Metric) -> Metric:
    if denominator is INSUFFICIENT_DATA or denominator <= 0:
        return INSUFFICIENT_DATA
    return numerator / denominator


def _starting_weight(batch: BatchSnapshot, samples: Sequence[WeightSampleRecord]) -> Metric:
    if len(samples) >= 2:
        return samples[0].average_weight
    if len(samples) == 1 and batch.initial_weight_kg is not None:
        return batch.initial_weight_kg
    return INSUFFICIENT_DATA


def _build_trend(
    batch: BatchSnapshot,
    consumptions: Sequence[ConsumptionRecord],
    samples: Sequence[WeightSampleRecord],
    starting_weight: Metric,
) -> list[TrendPoint]:
    if len(samples) < 2 or starting_weight is INSUFFICIENT_DATA:
        return []
    trend: list[TrendPoint] = []
    last_age: Optional[int] = None
    for sample in samples:
        if last_age is not None and sample.age_in_days <= last_age:
            logger.debug(
                "Skipping weight sample of %s on %s: age %s does not advance the trend",
                batch.name,
                sample.weighed_on,
                sample.age_in_days,
            )
            continue
        feed_to_date = sum(
            (record.mass_kg for record in consumptions if record.consumed_on <= sample.weighed_on),
            Decimal("0"),
        )
        gain = (sample.average_weight - starting_weight) * batch.current_stock
        trend.append(
            TrendPoint(
                weighing_date=sample.weighed_on,
                age_in_days=sample.age_in_days,
                average_weight=sample.average_weight,
                fcr=_quantize(_safe_divide(feed_to_date, gain), FCR_QUANTIZE),
            )
        )
        last_age = sample.age_in_days
    return trend


def build_fcr_report(
    batch: BatchSnapshot,
    consumptions: Iterable[ConsumptionRecord],
    samples: Iterable[WeightSampleRecord],
    *,
    as_of: date,
    benchmarks: BenchmarkTable,
) -> FCRReport:
    """Compute the feed-efficiency report of a batch from plain records.

    Records dated after ``as_of`` are ignored. Gain-dependent metrics come back
    as ``INSUFFICIENT_DATA`` when no positive weight gain can be derived.
    """
    consumption_list = sorted(
        (record for record in consumptions if record.consumed_on <= as_of),
        key=lambda record: record.consumed_on,
    )
    sample_list = sorted(
        (sample for sample in samples if sample.weighed_on <= as_of),
        key=lambda sample: sample.weighed_on,
    )

    total_mass = sum((record.mass_kg for record in consumption_list), Decimal("0"))
    total_cost = sum((record.cost for record in consumption_list), Decimal("0"))

    starting_weight = _starting_weight(batch, sample_list)
    current_weight: Metric = sample_list[-1].average_weight if sample_list else INSUFFICIENT_DATA
    if starting_weight is INSUFFICIENT_DATA or current_weight is INSUFFICIENT_DATA:
        gain_per_bird: Metric = INSUFFICIENT_DATA
        total_gain: Metric = INSUFFICIENT_DATA
    else:
        gain_per_bird = current_weight - starting_weight
        total_gain = gain_per_bird * batch.current_stock

    fcr = _safe_divide(total_mass, total_gain)
    cost_per_gain = _safe_divide(total_cost, total_gain)

    age_in_days = max((as_of - batch.arrival_date).days, 0)
    if gain_per_bird is INSUFFICIENT_DATA or age_in_days == 0:
        daily_gain: Metric = INSUFFICIENT_DATA
    else:
        daily_gain = gain_per_bird / age_in_days

    return FCRReport(
        batch=batch,
        as_of=as_of,
        age_in_days=age_in_days,
        total_feed_mass_kg=total_mass.quantize(MONEY_QUANTIZE, rounding=ROUND_HALF_UP),
        total_feed_cost=total_cost.quantize(MONEY_QUANTIZE, rounding=ROUND_HALF_UP),
        initial_weight=_quantize(starting_weight, WEIGHT_QUANTIZE),
        current_weight=_quantize(current_weight, WEIGHT_QUANTIZE),
        weight_gain_per_bird=_quantize(gain_per_bird, WEIGHT_QUANTIZE),
        total_weight_gain=_quantize(total_gain, WEIGHT_QUANTIZE),
        fcr=_quantize(fcr, FCR_QUANTIZE),
        cost_per_kg_gain=_quantize(cost_per_gain, MONEY_QUANTIZE),
        daily_weight_gain=_quantize(daily_gain, WEIGHT_QUANTIZE),
        performance=benchmarks.classify(fcr),
        benchmarks=benchmarks,
        consumption_count=len(consumption_list),
        weight_record_count=len(sample_list),
        trend=_build_trend(batch, consumption_list, sample_list, starting_weight),
    )


def resolve_benchmarks(
    livestock_type: Optional[LivestockType],
    benchmarks: Optional[BenchmarkTable | Sequence[Any]] = None,
) -> BenchmarkTable:
    if isinstance(benchmarks, BenchmarkTable):
        return benchmarks
    if benchmarks is not None:
        return BenchmarkTable.from_values(benchmarks)
    if livestock_type is not None and livestock_type.benchmark_thresholds:
        return BenchmarkTable.from_values(livestock_type.benchmark_thresholds)
    configured: Mapping[str, Sequence[Any]] = getattr(settings, "FCR_BENCHMARKS", {}) or {}
    if livestock_type is not None and livestock_type.code in configured:
        return BenchmarkTable.from_values(configured[livestock_type.code])
    if "__default__" in configured:
        return BenchmarkTable.from_values(configured["__default__"])
    return BenchmarkTable.from_values(DEFAULT_BENCHMARK_THRESHOLDS)


def _snapshot(batch: Batch) -> BatchSnapshot:
    livestock_type = batch.livestock_type
    return BatchSnapshot(
        batch_id=batch.pk,
        name=batch.name,
        arrival_date=batch.arrival_date,
        quantity_received=batch.quantity_received,
        current_stock=batch.current_stock,
        livestock_type=livestock_type.name,
        initial_weight_kg=livestock_type.initial_weight_kg,
    )


def compute_fcr(
    batch_id: Any,
    as_of: Optional[date] = None,
    benchmarks: Optional[BenchmarkTable | Sequence[Any]] = None,
) -> FCRReport:
    """Build the feed conversion report of a batch as of a given day (today by default)."""
    batch = get_batch(batch_id)
    as_of = as_of or timezone.localdate()
    consumptions = [
        ConsumptionRecord(
            consumed_on=consumption.consumption_date,
            quantity=consumption.quantity_bags,
            bag_weight_kg=consumption.inventory.bag_weight_kg,
            price_per_bag=consumption.price_per_bag,
        )
        for consumption in FeedConsumption.objects.filter(batch=batch, consumption_date__lte=as_of)
        .select_related("inventory")
        .order_by("consumption_date", "pk")
    ]
    samples = [
        WeightSampleRecord(
            weighed_on=record.weighing_date,
            age_in_days=record.age_in_days,
            average_weight=record.average_weight,
        )
        for record in batch.weight_records.filter(weighing_date__lte=as_of).order_by("weighing_date")
    ]
    report = build_fcr_report(
        _snapshot(batch),
        consumptions,
        samples,
        as_of=as_of,
        benchmarks=resolve_benchmarks(batch.livestock_type, benchmarks),
    )
    logger.debug("Computed FCR %r for batch %s as of %s", report.fcr, batch.pk, as_of)
    return report


__all__ = [
    "INSUFFICIENT_DATA",
    "BatchNotFound",
    "BatchSnapshot",
    "BenchmarkTable",
    "ConsumptionRecord",
    "FCRReport",
    "PerformanceTier",
    "TrendPoint",
    "WeightSampleRecord",
    "build_fcr_report",
    "compute_fcr",
    "resolve_benchmarks",
]

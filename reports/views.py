from __future__ import annotations

from typing import Any

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import HttpRequest, JsonResponse
from django.utils.dateparse import parse_date
from django.views import View

from farmops.api import json_error

from .services.feed_conversion import INSUFFICIENT_DATA, BatchNotFound, FCRReport, compute_fcr


def _metric(value: Any) -> dict[str, Any]:
    if value is INSUFFICIENT_DATA:
        return {"value": None, "insufficient_data": True}
    return {"value": value, "insufficient_data": False}


def serialize_fcr_report(report: FCRReport) -> dict[str, Any]:
    performance = report.performance
    return {
        "batch": {
            "id": report.batch.batch_id,
            "name": report.batch.name,
            "livestock_type": report.batch.livestock_type,
            "arrival_date": report.batch.arrival_date,
            "age_in_days": report.age_in_days,
            "quantity_received": report.batch.quantity_received,
            "current_stock": report.batch.current_stock,
            "mortality": report.batch.mortality,
        },
        "as_of": report.as_of,
        "metrics": {
            "total_feed_mass_kg": _metric(report.total_feed_mass_kg),
            "total_feed_cost": _metric(report.total_feed_cost),
            "initial_weight": _metric(report.initial_weight),
            "current_weight": _metric(report.current_weight),
            "weight_gain_per_bird": _metric(report.weight_gain_per_bird),
            "total_weight_gain": _metric(report.total_weight_gain),
            "fcr": _metric(report.fcr),
            "cost_per_kg_gain": _metric(report.cost_per_kg_gain),
            "daily_weight_gain": _metric(report.daily_weight_gain),
        },
        "performance": None if performance is INSUFFICIENT_DATA else performance.value,
        "benchmarks": report.benchmarks.as_dict(),
        "trend": [
            {
                "date": point.weighing_date,
                "age_in_days": point.age_in_days,
                "average_weight": point.average_weight,
                "fcr": _metric(point.fcr),
            }
            for point in report.trend
        ],
        "record_counts": {
            "consumption": report.consumption_count,
            "weight": report.weight_record_count,
        },
    }


class FeedConversionReportView(LoginRequiredMixin, View):
    http_method_names = ["get"]

    def get(self, request: HttpRequest, *args: Any, **kwargs: Any) -> JsonResponse:
        batch_id = (request.GET.get("batch") or "").strip()
        if not batch_id:
            return json_error("The batch parameter is required.")
        as_of_raw = (request.GET.get("as_of") or "").strip()
        as_of = None
        if as_of_raw:
            try:
                as_of = parse_date(as_of_raw)
            except ValueError:
                as_of = None
            if as_of is None:
                return json_error("Invalid as_of date, expected YYYY-MM-DD.")
        try:
            report = compute_fcr(batch_id, as_of=as_of)
        except BatchNotFound as exc:
            return json_error(str(exc), status=404, code="batch_not_found")
        return JsonResponse(serialize_fcr_report(report))

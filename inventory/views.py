from __future__ import annotations

from typing import Any

from django import forms
from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import HttpRequest, JsonResponse
from django.shortcuts import get_object_or_404
from django.views import View

from farmops.api import form_errors, json_error, ledger_error_response, load_json_body

from .forms import FeedConsumptionFilterForm, FeedConsumptionForm, FeedPurchaseForm, StockMovementForm
from .models import FeedConsumption, FeedInventory, FeedPurchase, StockMovement
from .selectors import summarize_feed_consumption, summarize_feed_inventory
from .services import FeedConsumptionService, FeedPurchaseService, LedgerError, StockMovementService


def _lot_payload(lot: FeedInventory) -> dict[str, Any]:
    return {
        "id": lot.pk,
        "feed_type": lot.feed_type,
        "feed_brand": lot.feed_brand,
        "current_quantity": lot.current_quantity,
        "reorder_level": lot.reorder_level,
        "unit_cost": lot.unit_cost,
        "bag_weight_kg": lot.bag_weight_kg,
        "last_restock_date": lot.last_restock_date,
        "is_active": lot.is_active,
        "is_below_reorder_level": lot.is_below_reorder_level,
    }


def _purchase_payload(purchase: FeedPurchase) -> dict[str, Any]:
    return {
        "id": purchase.pk,
        "inventory": purchase.inventory_id,
        "supplier": purchase.supplier_id,
        "purchase_date": purchase.purchase_date,
        "quantity_bags": purchase.quantity_bags,
        "price_per_bag": purchase.price_per_bag,
        "total_cost": purchase.total_cost,
        "payment_status": purchase.payment_status,
        "invoice_number": purchase.invoice_number,
        "notes": purchase.notes,
    }


def _consumption_payload(consumption: FeedConsumption) -> dict[str, Any]:
    return {
        "id": consumption.pk,
        "inventory": consumption.inventory_id,
        "consumption_type": consumption.consumption_type,
        "batch": consumption.batch_id,
        "flock": consumption.flock_id,
        "consumption_date": consumption.consumption_date,
        "quantity_bags": consumption.quantity_bags,
        "price_per_bag": consumption.price_per_bag,
        "total_cost": consumption.total_cost,
        "notes": consumption.notes,
    }


def _movement_payload(movement: StockMovement) -> dict[str, Any]:
    return {
        "id": movement.pk,
        "item": movement.item_id,
        "movement_date": movement.movement_date,
        "movement_type": movement.movement_type,
        "quantity": movement.quantity,
        "balance_after": movement.balance_after,
        "reference_number": movement.reference_number,
        "reason": movement.reason,
    }


def _merge_payload(
    form_class: type[forms.Form], current: dict[str, Any], payload: dict[str, Any]
) -> dict[str, Any]:
    form_data = dict(current)
    for key, value in payload.items():
        if key in form_class.base_fields:
            form_data[key] = value
    return form_data


class FeedInventoryCollectionView(LoginRequiredMixin, View):
    http_method_names = ["get"]

    def get(self, request: HttpRequest, *args: Any, **kwargs: Any) -> JsonResponse:
        summary = summarize_feed_inventory(
            include_inactive=request.GET.get("include_inactive") == "true",
            feed_type=request.GET.get("feed_type") or None,
        )
        return JsonResponse(
            {
                "inventory": [_lot_payload(lot) for lot in summary["lots"]],
                "summary": {
                    "total_items": summary["total_items"],
                    "total_value": summary["total_value"],
                    "low_stock_count": summary["low_stock_count"],
                    "low_stock_items": summary["low_stock"],
                },
            }
        )


class FeedPurchaseCollectionView(LoginRequiredMixin, View):
    http_method_names = ["post"]

    def post(self, request: HttpRequest, *args: Any, **kwargs: Any) -> JsonResponse:
        payload, error = load_json_body(request)
        if error:
            return error
        form = FeedPurchaseForm(payload)
        if not form.is_valid():
            return json_error("Invalid purchase data.", errors=form_errors(form))
        try:
            purchase = form.save(request.user)
        except LedgerError as exc:
            return ledger_error_response(exc)
        return JsonResponse({"purchase": _purchase_payload(purchase)}, status=201)


class FeedPurchaseDetailView(LoginRequiredMixin, View):
    http_method_names = ["patch", "delete"]

    def patch(self, request: HttpRequest, purchase_id: int, *args: Any, **kwargs: Any) -> JsonResponse:
        purchase = get_object_or_404(FeedPurchase, pk=purchase_id)
        payload, error = load_json_body(request)
        if error:
            return error
        form = FeedPurchaseForm(_merge_payload(FeedPurchaseForm, _purchase_payload(purchase), payload))
        if not form.is_valid():
            return json_error("Invalid purchase data.", errors=form_errors(form))
        try:
            purchase = form.update(request.user, purchase)
        except LedgerError as exc:
            return ledger_error_response(exc)
        return JsonResponse({"purchase": _purchase_payload(purchase)})

    def delete(self, request: HttpRequest, purchase_id: int, *args: Any, **kwargs: Any) -> JsonResponse:
        purchase = get_object_or_404(FeedPurchase, pk=purchase_id)
        try:
            FeedPurchaseService(actor=request.user).delete(purchase)
        except LedgerError as exc:
            return ledger_error_response(exc)
        return JsonResponse({"status": "deleted"})


class FeedConsumptionCollectionView(LoginRequiredMixin, View):
    http_method_names = ["get", "post"]

    def get(self, request: HttpRequest, *args: Any, **kwargs: Any) -> JsonResponse:
        filters = FeedConsumptionFilterForm(request.GET)
        if not filters.is_valid():
            return json_error("Invalid consumption filters.", errors=form_errors(filters))
        cleaned = filters.cleaned_data
        summary = summarize_feed_consumption(
            consumption_type=cleaned.get("consumption_type") or None,
            batch_id=cleaned.get("batch"),
            flock_id=cleaned.get("flock"),
            start_date=cleaned.get("start_date"),
            end_date=cleaned.get("end_date"),
        )
        return JsonResponse(
            {
                "consumptions": [_consumption_payload(record) for record in summary["records"]],
                "summary": {
                    "total_records": summary["total_records"],
                    "total_feed_used": summary["total_feed_used"],
                    "total_cost": summary["total_cost"],
                    "average_daily_cost": summary["average_daily_cost"],
                },
            }
        )

    def post(self, request: HttpRequest, *args: Any, **kwargs: Any) -> JsonResponse:
        payload, error = load_json_body(request)
        if error:
            return error
        form = FeedConsumptionForm(payload)
        if not form.is_valid():
            return json_error("Invalid consumption data.", errors=form_errors(form))
        try:
            consumption = form.save(request.user)
        except LedgerError as exc:
            return ledger_error_response(exc)
        return JsonResponse({"consumption": _consumption_payload(consumption)}, status=201)


class FeedConsumptionDetailView(LoginRequiredMixin, View):
    http_method_names = ["patch", "delete"]

    def patch(self, request: HttpRequest, consumption_id: int, *args: Any, **kwargs: Any) -> JsonResponse:
        consumption = get_object_or_404(FeedConsumption, pk=consumption_id)
        payload, error = load_json_body(request)
        if error:
            return error
        current = _consumption_payload(consumption)
        if payload.get("consumption_type", current["consumption_type"]) != current["consumption_type"]:
            # Switching the fed group drops the stored reference to the other one.
            current.update(batch=None, flock=None)
        form = FeedConsumptionForm(_merge_payload(FeedConsumptionForm, current, payload))
        if not form.is_valid():
            return json_error("Invalid consumption data.", errors=form_errors(form))
        try:
            consumption = form.update(request.user, consumption)
        except LedgerError as exc:
            return ledger_error_response(exc)
        return JsonResponse({"consumption": _consumption_payload(consumption)})

    def delete(self, request: HttpRequest, consumption_id: int, *args: Any, **kwargs: Any) -> JsonResponse:
        consumption = get_object_or_404(FeedConsumption, pk=consumption_id)
        try:
            FeedConsumptionService(actor=request.user).delete(consumption)
        except LedgerError as exc:
            return ledger_error_response(exc)
        return JsonResponse({"status": "deleted"})


class StockMovementCollectionView(LoginRequiredMixin, View):
    http_method_names = ["post"]

    def post(self, request: HttpRequest, *args: Any, **kwargs: Any) -> JsonResponse:
        payload, error = load_json_body(request)
        if error:
            return error
        form = StockMovementForm(payload)
        if not form.is_valid():
            return json_error("Invalid stock movement.", errors=form_errors(form))
        try:
            movement = form.save(request.user)
        except LedgerError as exc:
            return ledger_error_response(exc)
        return JsonResponse({"movement": _movement_payload(movement)}, status=201)


class StockMovementDetailView(LoginRequiredMixin, View):
    http_method_names = ["delete"]

    def delete(self, request: HttpRequest, movement_id: int, *args: Any, **kwargs: Any) -> JsonResponse:
        movement = get_object_or_404(StockMovement, pk=movement_id)
        try:
            StockMovementService(actor=request.user).delete(movement)
        except LedgerError as exc:
            return ledger_error_response(exc)
        return JsonResponse({"status": "deleted"})

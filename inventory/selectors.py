from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from django.db.models import DecimalField, Sum, Value
from django.db.models.functions import Coalesce

from .models import FeedConsumption, FeedInventory, InventoryItem, StockedLot, StockMovement

DECIMAL_FIELD = DecimalField(max_digits=14, decimal_places=2)
ZERO = Value(Decimal("0.00"), output_field=DECIMAL_FIELD)


def replay_quantity(lot: StockedLot) -> Decimal:
    """Rebuild a lot's quantity from its opening stock and surviving events."""
    if isinstance(lot, FeedInventory):
        purchased = lot.purchases.aggregate(total=Coalesce(Sum("quantity_bags"), ZERO))["total"]
        consumed = lot.consumptions.aggregate(total=Coalesce(Sum("quantity_bags"), ZERO))["total"]
        return lot.opening_quantity + purchased - consumed
    if isinstance(lot, InventoryItem):
        movements = lot.movements.all()
        outbound = movements.filter(movement_type__in=StockMovement.OUTBOUND_TYPES).aggregate(
            total=Coalesce(Sum("quantity"), ZERO)
        )["total"]
        inbound = movements.exclude(movement_type__in=StockMovement.OUTBOUND_TYPES).aggregate(
            total=Coalesce(Sum("quantity"), ZERO)
        )["total"]
        return lot.opening_quantity + inbound - outbound
    raise TypeError(f"{type(lot).__name__} is not a stocked lot.")


def summarize_feed_inventory(*, include_inactive: bool = False, feed_type: str | None = None) -> dict[str, Any]:
    queryset = FeedInventory.objects.select_related("supplier").order_by("feed_type", "feed_brand")
    if not include_inactive:
        queryset = queryset.filter(is_active=True)
    if feed_type:
        queryset = queryset.filter(feed_type=feed_type)
    lots = list(queryset)
    low_stock = [lot for lot in lots if lot.is_below_reorder_level]
    return {
        "lots": lots,
        "total_items": len(lots),
        "total_value": sum((lot.stock_value for lot in lots), Decimal("0.00")),
        "low_stock_count": len(low_stock),
        "low_stock": [
            {
                "id": lot.pk,
                "feed_type": lot.feed_type,
                "current_quantity": lot.current_quantity,
                "reorder_level": lot.reorder_level,
            }
            for lot in low_stock
        ],
    }


def summarize_feed_consumption(
    *,
    consumption_type: str | None = None,
    batch_id: int | None = None,
    flock_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict[str, Any]:
    queryset = FeedConsumption.objects.select_related("inventory", "batch", "flock").order_by(
        "-consumption_date", "-created_at"
    )
    if consumption_type:
        queryset = queryset.filter(consumption_type=consumption_type)
    if batch_id:
        queryset = queryset.filter(batch_id=batch_id)
    if flock_id:
        queryset = queryset.filter(flock_id=flock_id)
    if start_date:
        queryset = queryset.filter(consumption_date__gte=start_date)
    if end_date:
        queryset = queryset.filter(consumption_date__lte=end_date)
    totals = queryset.aggregate(
        total_feed_used=Coalesce(Sum("quantity_bags"), ZERO),
        total_cost=Coalesce(Sum("total_cost"), ZERO),
    )
    records = list(queryset)
    average_cost = Decimal("0.00")
    if records:
        average_cost = (totals["total_cost"] / len(records)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return {
        "records": records,
        "total_records": len(records),
        "total_feed_used": totals["total_feed_used"],
        "total_cost": totals["total_cost"],
        "average_daily_cost": average_cost,
    }

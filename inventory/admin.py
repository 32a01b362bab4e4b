from django.contrib import admin

from .models import FeedConsumption, FeedInventory, FeedPurchase, FeedSupplier, InventoryItem, StockMovement


class StockedLotAdmin(admin.ModelAdmin):
    readonly_fields = ("current_quantity", "created_at", "updated_at")

    def get_readonly_fields(self, request, obj=None):
        fields = tuple(super().get_readonly_fields(request, obj))
        if obj is not None:
            # Stock only moves through the ledger once the lot exists.
            fields += ("opening_quantity",)
        return fields


@admin.register(FeedSupplier)
class FeedSupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "email", "is_active")
    search_fields = ("name", "email")
    list_filter = ("is_active",)


@admin.register(FeedInventory)
class FeedInventoryAdmin(StockedLotAdmin):
    list_display = (
        "feed_type",
        "feed_brand",
        "current_quantity",
        "reorder_level",
        "unit_cost",
        "last_restock_date",
        "is_active",
    )
    search_fields = ("feed_type", "feed_brand")
    list_filter = ("is_active", "supplier")


@admin.register(InventoryItem)
class InventoryItemAdmin(StockedLotAdmin):
    list_display = ("name", "category", "unit", "current_quantity", "reorder_level", "is_active")
    search_fields = ("name", "category")
    list_filter = ("is_active", "category")


class LedgerRecordAdmin(admin.ModelAdmin):
    """Ledger rows are written through the services so stock stays consistent."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(FeedPurchase)
class FeedPurchaseAdmin(LedgerRecordAdmin):
    list_display = (
        "purchase_date",
        "inventory",
        "supplier",
        "quantity_bags",
        "price_per_bag",
        "total_cost",
        "payment_status",
    )
    search_fields = ("inventory__feed_type", "invoice_number", "notes")
    list_filter = ("payment_status", "supplier")


@admin.register(FeedConsumption)
class FeedConsumptionAdmin(LedgerRecordAdmin):
    list_display = ("consumption_date", "inventory", "consumption_type", "fed_group", "quantity_bags", "total_cost")
    search_fields = ("inventory__feed_type", "batch__name", "flock__name", "notes")
    list_filter = ("consumption_type", "inventory")


@admin.register(StockMovement)
class StockMovementAdmin(LedgerRecordAdmin):
    list_display = ("movement_date", "item", "movement_type", "quantity", "balance_after")
    search_fields = ("item__name", "reference_number", "reason")
    list_filter = ("movement_type",)

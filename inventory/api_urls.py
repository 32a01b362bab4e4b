from django.urls import path

from .views import (
    FeedConsumptionCollectionView,
    FeedConsumptionDetailView,
    FeedInventoryCollectionView,
    FeedPurchaseCollectionView,
    FeedPurchaseDetailView,
    StockMovementCollectionView,
    StockMovementDetailView,
)

app_name = "inventory-api"

urlpatterns = [
    path("feed/inventory/", FeedInventoryCollectionView.as_view(), name="feed-inventory"),
    path("feed/purchases/", FeedPurchaseCollectionView.as_view(), name="feed-purchases"),
    path("feed/purchases/<int:purchase_id>/", FeedPurchaseDetailView.as_view(), name="feed-purchase-detail"),
    path("feed/consumption/", FeedConsumptionCollectionView.as_view(), name="feed-consumption"),
    path(
        "feed/consumption/<int:consumption_id>/",
        FeedConsumptionDetailView.as_view(),
        name="feed-consumption-detail",
    ),
    path("inventory/stock-movements/", StockMovementCollectionView.as_view(), name="stock-movements"),
    path(
        "inventory/stock-movements/<int:movement_id>/",
        StockMovementDetailView.as_view(),
        name="stock-movement-detail",
    ),
]

"""Stock ledger and the record services built on top of it."""

from .ledger import (
    EntryKind,
    InsufficientStock,
    InvalidLedgerEntry,
    LedgerEntry,
    LedgerError,
    LotKey,
    LotNotFound,
    RetractionWouldUnderflow,
    StockLedger,
)
from .records import (
    FeedConsumptionService,
    FeedPurchaseService,
    LedgerRecordService,
    StockMovementService,
    get_or_create_feed_lot,
)

__all__ = [
    "EntryKind",
    "FeedConsumptionService",
    "FeedPurchaseService",
    "InsufficientStock",
    "InvalidLedgerEntry",
    "LedgerEntry",
    "LedgerError",
    "LedgerRecordService",
    "LotKey",
    "LotNotFound",
    "RetractionWouldUnderflow",
    "StockLedger",
    "StockMovementService",
    "get_or_create_feed_lot",
]

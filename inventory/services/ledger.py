from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Mapping

from django.apps import apps
from django.db import models, transaction

from inventory.models import FeedConsumption, FeedPurchase, StockedLot, StockMovement

logger = logging.getLogger(__name__)

QUANTITY_QUANTIZE = Decimal("0.01")


class EntryKind(str, Enum):
    PURCHASE = "purchase"
    CONSUMPTION = "consumption"


@dataclass(frozen=True, order=True, slots=True)
class LotKey:
    """Storage reference to a stocked lot, ordered so locks are taken consistently."""

    label: str
    pk: int

    @classmethod
    def of(cls, lot: StockedLot) -> "LotKey":
        return cls(label=lot._meta.label_lower, pk=lot.pk)

    @property
    def model(self) -> type[StockedLot]:
        return apps.get_model(self.label)


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    kind: EntryKind
    lot: LotKey
    quantity: Decimal

    @property
    def net_delta(self) -> Decimal:
        if self.kind == EntryKind.PURCHASE:
            return self.quantity
        return -self.quantity

    @classmethod
    def purchase(cls, lot: StockedLot | LotKey, quantity: Decimal) -> "LedgerEntry":
        return cls(kind=EntryKind.PURCHASE, lot=_as_key(lot), quantity=_as_quantity(quantity))

    @classmethod
    def consumption(cls, lot: StockedLot | LotKey, quantity: Decimal) -> "LedgerEntry":
        return cls(kind=EntryKind.CONSUMPTION, lot=_as_key(lot), quantity=_as_quantity(quantity))

    @classmethod
    def from_record(cls, record: models.Model) -> "LedgerEntry":
        if isinstance(record, FeedPurchase):
            return cls(
                kind=EntryKind.PURCHASE,
                lot=LotKey("inventory.feedinventory", record.inventory_id),
                quantity=_as_quantity(record.quantity_bags),
            )
        if isinstance(record, FeedConsumption):
            return cls(
                kind=EntryKind.CONSUMPTION,
                lot=LotKey("inventory.feedinventory", record.inventory_id),
                quantity=_as_quantity(record.quantity_bags),
            )
        if isinstance(record, StockMovement):
            kind = EntryKind.CONSUMPTION if record.is_outbound else EntryKind.PURCHASE
            return cls(
                kind=kind,
                lot=LotKey("inventory.inventoryitem", record.item_id),
                quantity=_as_quantity(record.quantity),
            )
        raise TypeError(f"{type(record).__name__} is not a ledger record.")


def _as_quantity(value) -> Decimal:
    # Lot quantities are stored with two decimal places.
    if value is None:
        return value
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(QUANTITY_QUANTIZE, rounding=ROUND_HALF_UP)


def _as_key(lot: StockedLot | LotKey) -> LotKey:
    if isinstance(lot, LotKey):
        return lot
    return LotKey.of(lot)


class LedgerError(Exception):
    code = "ledger_error"

    def __init__(
        self,
        message: str,
        *,
        lot: LotKey | None = None,
        available: Decimal | None = None,
        requested: Decimal | None = None,
    ) -> None:
        super().__init__(message)
        self.lot = lot
        self.available = available
        self.requested = requested


class InsufficientStock(LedgerError):
    code = "insufficient_stock"


class RetractionWouldUnderflow(LedgerError):
    code = "retraction_would_underflow"


class InvalidLedgerEntry(LedgerError):
    code = "invalid_entry"


class LotNotFound(LedgerError):
    code = "lot_not_found"


class StockLedger:
    """Applies purchase and consumption entries to lot quantities.

    Quantities are materialized on the lot rows; every operation locks the
    touched lots, projects the resulting quantities, checks the stock floor and
    only then writes. A rejected operation leaves every lot untouched.
    """

    def __init__(self, *, actor=None) -> None:
        self.actor = actor

    def apply(self, entry: LedgerEntry) -> Decimal:
        self._validate(entry)
        with transaction.atomic():
            lots = self._lock((entry.lot,))
            projected = self._project(lots, ((entry.lot, entry.net_delta),))
            self._check_floor(lots, projected, forward=entry)
            self._commit(lots, projected, operation="apply")
        return projected[entry.lot]

    def retract(self, entry: LedgerEntry) -> Decimal:
        self._validate(entry)
        with transaction.atomic():
            lots = self._lock((entry.lot,))
            projected = self._project(lots, ((entry.lot, -entry.net_delta),))
            self._check_floor(lots, projected, forward=None)
            self._commit(lots, projected, operation="retract")
        return projected[entry.lot]

    def amend(self, old: LedgerEntry, new: LedgerEntry) -> dict[LotKey, Decimal]:
        """Swap ``old`` for ``new``; both lots keep their quantities on rejection."""
        self._validate(old)
        self._validate(new)
        with transaction.atomic():
            lots = self._lock((old.lot, new.lot))
            projected = self._project(
                lots,
                ((old.lot, -old.net_delta), (new.lot, new.net_delta)),
            )
            self._check_floor(lots, projected, forward=new)
            self._commit(lots, projected, operation="amend")
        return projected

    def _validate(self, entry: LedgerEntry) -> None:
        if entry.quantity is None or entry.quantity <= 0:
            raise InvalidLedgerEntry(
                "Ledger quantities must be greater than zero.",
                lot=entry.lot,
                requested=entry.quantity,
            )

    def _lock(self, keys: Iterable[LotKey]) -> dict[LotKey, StockedLot]:
        lots: dict[LotKey, StockedLot] = {}
        for key in sorted(set(keys)):
            try:
                model = key.model
            except LookupError as exc:
                raise LotNotFound(f"Unknown lot type {key.label}.", lot=key) from exc
            try:
                lots[key] = model.objects.select_for_update().get(pk=key.pk)
            except model.DoesNotExist as exc:
                raise LotNotFound(f"Lot {key.label}:{key.pk} does not exist.", lot=key) from exc
        return lots

    def _project(
        self,
        lots: Mapping[LotKey, StockedLot],
        deltas: Iterable[tuple[LotKey, Decimal]],
    ) -> dict[LotKey, Decimal]:
        projected = {key: lot.current_quantity for key, lot in lots.items()}
        for key, delta in deltas:
            projected[key] += delta
        return projected

    def _check_floor(
        self,
        lots: Mapping[LotKey, StockedLot],
        projected: Mapping[LotKey, Decimal],
        *,
        forward: LedgerEntry | None,
    ) -> None:
        for key in sorted(projected):
            if projected[key] >= 0:
                continue
            available = lots[key].current_quantity
            logger.warning(
                "Rejected ledger operation on %s:%s (available=%s, projected=%s)",
                key.label,
                key.pk,
                available,
                projected[key],
            )
            if forward is not None and forward.kind == EntryKind.CONSUMPTION and forward.lot == key:
                raise InsufficientStock(
                    f"Insufficient stock. Available: {available}, requested: {forward.quantity}.",
                    lot=key,
                    available=available,
                    requested=forward.quantity,
                )
            raise RetractionWouldUnderflow(
                f"Reversing this entry would leave {projected[key]} in stock; "
                f"{available} available.",
                lot=key,
                available=available,
                requested=available - projected[key],
            )

    def _commit(
        self,
        lots: Mapping[LotKey, StockedLot],
        projected: Mapping[LotKey, Decimal],
        *,
        operation: str,
    ) -> None:
        for key in sorted(projected):
            lot = lots[key]
            if lot.current_quantity == projected[key]:
                continue
            previous = lot.current_quantity
            lot.current_quantity = projected[key]
            lot.save(update_fields=("current_quantity", "updated_at"))
            logger.info(
                "Ledger %s on %s:%s moved stock %s -> %s",
                operation,
                key.label,
                key.pk,
                previous,
                lot.current_quantity,
            )

from __future__ import annotations

import logging
from datetime import date

from django.db import transaction

from production.models import Batch, MortalityRecord

logger = logging.getLogger(__name__)


class MortalityValidationError(Exception):
    def __init__(self, message: str, *, available: int, requested: int) -> None:
        super().__init__(message)
        self.available = available
        self.requested = requested


class MortalityService:
    """Keeps ``Batch.current_stock`` in step with the recorded deaths."""

    def __init__(self, *, actor=None) -> None:
        self.actor = actor

    def register(self, *, batch: Batch, count: int, on_date: date, cause: str = "") -> MortalityRecord:
        with transaction.atomic():
            locked = self._lock_batch(batch.pk)
            self._adjust_stock(locked, -count)
            record = MortalityRecord.objects.create(
                batch=locked,
                date=on_date,
                count=count,
                cause=cause,
                recorded_by=self.actor,
            )
        batch.current_stock = locked.current_stock
        return record

    def update(self, record: MortalityRecord, *, count: int, on_date: date | None = None, cause: str | None = None) -> MortalityRecord:
        with transaction.atomic():
            locked = self._lock_batch(record.batch_id)
            self._adjust_stock(locked, record.count - count)
            record.count = count
            if on_date is not None:
                record.date = on_date
            if cause is not None:
                record.cause = cause
            record.save(update_fields=("count", "date", "cause"))
        record.batch = locked
        return record

    def delete(self, record: MortalityRecord) -> None:
        with transaction.atomic():
            locked = self._lock_batch(record.batch_id)
            self._adjust_stock(locked, record.count)
            record.delete()

    def _lock_batch(self, batch_id: int) -> Batch:
        return Batch.objects.select_for_update().get(pk=batch_id)

    def _adjust_stock(self, batch: Batch, delta: int) -> None:
        if delta == 0:
            return
        new_stock = batch.current_stock + delta
        if new_stock < 0:
            logger.warning(
                "Rejected mortality adjustment of %s on batch %s with %s live birds",
                delta,
                batch.pk,
                batch.current_stock,
            )
            raise MortalityValidationError(
                "Mortality cannot exceed the live birds of the batch.",
                available=batch.current_stock,
                requested=-delta,
            )
        batch.current_stock = new_stock
        batch.save(update_fields=("current_stock", "updated_at"))

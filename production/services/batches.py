from __future__ import annotations

from production.models import Batch


class BatchNotFound(Exception):
    def __init__(self, batch_id) -> None:
        super().__init__(f"Batch {batch_id} does not exist.")
        self.batch_id = batch_id


def get_batch(batch_id) -> Batch:
    try:
        return Batch.objects.select_related("livestock_type").get(pk=batch_id)
    except (Batch.DoesNotExist, ValueError, TypeError) as exc:
        raise BatchNotFound(batch_id) from exc

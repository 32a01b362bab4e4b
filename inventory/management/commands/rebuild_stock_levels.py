from __future__ import annotations

from typing import Any, Iterable

from django.core.management.base import BaseCommand, CommandError, CommandParser
from django.db import transaction

from inventory.models import FeedInventory, InventoryItem, StockedLot
from inventory.selectors import replay_quantity


class Command(BaseCommand):
    help = (
        "Replays the purchase, consumption and movement history of every lot and "
        "compares it with the stored stock. Use --fix to overwrite drifted lots. "
        "Lots whose history replays below zero are reported and left untouched."
    )

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument(
            "--fix",
            action="store_true",
            help="Write the replayed quantity on lots that drifted.",
        )
        parser.add_argument(
            "--feed-lot",
            type=int,
            help="Only process the feed lot with this ID.",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        fix: bool = options.get("fix", False)
        feed_lot_id: int | None = options.get("feed_lot")
        feed_lots = FeedInventory.objects.order_by("pk")
        items = InventoryItem.objects.order_by("pk")
        if feed_lot_id:
            feed_lots = feed_lots.filter(pk=feed_lot_id)
            items = items.none()
            if not feed_lots.exists():
                raise CommandError(f"Feed lot {feed_lot_id} does not exist.")
        with transaction.atomic():
            drifted, negative = self._reconcile(feed_lots.select_for_update(), fix=fix)
            item_drifted, item_negative = self._reconcile(items.select_for_update(), fix=fix)
        drifted += item_drifted
        negative += item_negative
        if not drifted:
            self.stdout.write(self.style.SUCCESS("All lots match their ledger history."))
            return
        if fix:
            self.stdout.write(self.style.WARNING(f"Repaired lots: {drifted - negative}"))
        else:
            self.stdout.write(self.style.WARNING(f"Drifted lots: {drifted}"))
        if negative:
            self.stdout.write(
                self.style.ERROR(f"Lots with a negative replayed quantity, left for manual review: {negative}")
            )

    def _reconcile(self, lots: Iterable[StockedLot], *, fix: bool) -> tuple[int, int]:
        drifted = 0
        negative = 0
        for lot in lots:
            expected = replay_quantity(lot)
            if lot.current_quantity == expected:
                continue
            drifted += 1
            self.stdout.write(
                f"{lot._meta.verbose_name} #{lot.pk} ({lot}): stored {lot.current_quantity}, replayed {expected}"
            )
            if expected < 0:
                # Stock is never written below zero; the history itself needs correcting.
                negative += 1
                continue
            if fix:
                lot.current_quantity = expected
                lot.save(update_fields=("current_quantity", "updated_at"))
        return drifted, negative

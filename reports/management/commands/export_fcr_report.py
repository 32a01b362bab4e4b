from __future__ import annotations

from pathlib import Path
from typing import Any

from django.core.management.base import BaseCommand, CommandError, CommandParser
from django.utils.dateparse import parse_date

from reports.services.fcr_export import build_fcr_workbook
from reports.services.feed_conversion import BatchNotFound, compute_fcr


class Command(BaseCommand):
    help = "Exports the feed conversion report of a batch to an .xlsx workbook."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument("batch_id", type=int, help="ID of the batch to report on.")
        parser.add_argument(
            "--as-of",
            dest="as_of",
            help="Report date (YYYY-MM-DD). Defaults to today.",
        )
        parser.add_argument(
            "--output",
            "-o",
            dest="output",
            help="Destination file. Defaults to fcr_<batch>_<date>.xlsx in the working directory.",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        as_of = None
        if options.get("as_of"):
            as_of = parse_date(options["as_of"])
            if as_of is None:
                raise CommandError("The --as-of value must be a date in YYYY-MM-DD format.")

        try:
            report = compute_fcr(options["batch_id"], as_of=as_of)
        except BatchNotFound as exc:
            raise CommandError(str(exc)) from exc

        output = Path(options.get("output") or f"fcr_{report.batch.batch_id}_{report.as_of:%Y%m%d}.xlsx")
        if output.suffix.lower() != ".xlsx":
            raise CommandError("The output file must use the .xlsx extension.")

        build_fcr_workbook(report).save(output)
        self.stdout.write(self.style.SUCCESS(f"FCR report for {report.batch.name} written to {output}"))

"""Run the SEL text analysis over journal entries that have no insight yet.

Entries are processed newest first.  Entries whose analysis fails stay
pending and are retried on the next run; ``--offset`` skips past them.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = "Analyse journal entries that are missing SEL insights."

    def add_arguments(self, parser):
        parser.add_argument("--limit", type=int, default=100, help="Maximum number of entries to analyse.")
        parser.add_argument("--offset", type=int, default=0, help="Number of pending entries to skip.")

    def handle(self, *args, **options):
        from sel.services.errors import PersistenceError, ValidationError
        from sel.services.journal_analysis import analyze_pending_journal_entries
        from sel.services.text_analysis import TextAnalysisError

        limit = options["limit"]
        offset = options["offset"]
        self.stdout.write(self.style.NOTICE(f"Analysing up to {limit} journal entries..."))
        try:
            stats = analyze_pending_journal_entries(limit=limit, offset=offset)
        except (TextAnalysisError, ValidationError, PersistenceError) as exc:
            raise CommandError(f"Failed to analyse journal entries: {exc}") from exc

        for error in stats.errors:
            self.stdout.write(self.style.WARNING(f"Entry {error}"))
        if stats.failed:
            self.stdout.write(self.style.WARNING(f"{stats.failed} entries failed and remain pending."))
        self.stdout.write(
            self.style.SUCCESS(
                f"Journal analysis complete ({stats.processed} processed, {stats.skipped} skipped)."
            )
        )

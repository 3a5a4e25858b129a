"""Install the assessment question bank.

Without options the built-in questions are created or refreshed.  With
``--workbook`` the questions are read from an Excel file instead; existing
questions with the same code are updated in place.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = "Create or update the SEL assessment question bank."

    def add_arguments(self, parser):
        parser.add_argument(
            "--workbook",
            help="Path to an .xlsx file with question_code, dimension and question_text columns.",
        )

    def handle(self, *args, **options):
        from sel.services.question_bank import (
            QuestionBankError,
            import_questions_workbook,
            install_default_questions,
        )

        workbook = options.get("workbook")
        try:
            if workbook:
                self.stdout.write(self.style.NOTICE(f"Importing questions from {workbook}..."))
                try:
                    with open(workbook, "rb") as handle:
                        stats = import_questions_workbook(handle)
                except OSError as exc:
                    raise CommandError(f"Cannot open workbook {workbook}: {exc}") from exc
            else:
                self.stdout.write(self.style.NOTICE("Installing default assessment questions..."))
                stats = install_default_questions()
        except QuestionBankError as exc:
            raise CommandError(f"Failed to load assessment questions: {exc}") from exc

        if stats.skipped:
            self.stdout.write(self.style.WARNING(f"Skipped {stats.skipped} invalid rows."))
        self.stdout.write(
            self.style.SUCCESS(
                f"Assessment questions loaded ({stats.created} created, {stats.updated} updated)."
            )
        )

"""Tests for the journal analysis backfill and its management command."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone
from io import StringIO
from unittest import mock

from django.contrib.auth.models import User
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings

from sel.models import ChildProfile, JournalEntry, ParentProfile, SelInsight
from sel.services.errors import ValidationError
from sel.services.journal_analysis import analyze_pending_journal_entries, pending_journal_entries
from sel.services.text_analysis import TextAnalysisError

NOW = datetime(2024, 5, 10, 9, 30, tzinfo=dt_timezone.utc)

SCORES = {
    'self_awareness': 0.6,
    'self_management': 0.5,
    'social_awareness': 0.7,
    'relationship_skills': 0.8,
    'responsible_decision_making': 0.4,
}


@override_settings(SEL_ANALYSIS_URL='https://analysis.example.com/analyze')
class JournalBackfillTests(TestCase):
    def setUp(self) -> None:
        user = User.objects.create_user(username='parent@example.com', password='pass')
        parent = ParentProfile.objects.create(user=user)
        self.child = ChildProfile.objects.create(parent=parent, nickname='Sam')
        self.old = JournalEntry.objects.create(child=self.child, content='Old entry.', created_at=NOW - timedelta(days=2))
        self.new = JournalEntry.objects.create(
            child=self.child,
            went_well='I read a book.',
            created_at=NOW - timedelta(days=1),
        )
        self.done = JournalEntry.objects.create(child=self.child, content='Already scored.', created_at=NOW)
        SelInsight.objects.create(child=self.child, journal_entry=self.done, **SCORES)

    def test_pending_entries_newest_first(self) -> None:
        self.assertEqual(pending_journal_entries(), [self.new, self.old])
        self.assertEqual(pending_journal_entries(limit=1, offset=1), [self.old])

    def test_invalid_window(self) -> None:
        with self.assertRaises(ValidationError):
            pending_journal_entries(limit=0)
        with self.assertRaises(ValidationError):
            pending_journal_entries(offset=-1)

    def test_backfill_creates_linked_insights(self) -> None:
        with mock.patch('sel.services.text_analysis.analyze_free_text', return_value=SCORES) as analyze:
            stats = analyze_pending_journal_entries()
        self.assertEqual(stats.processed, 2)
        self.assertEqual(stats.failed, 0)
        self.assertEqual(analyze.call_count, 2)
        analyze.assert_any_call('Journal Entry:\nWhat went well: I read a book.', self.child.pk)
        analyze.assert_any_call('Old entry.', self.child.pk)
        self.assertEqual(SelInsight.objects.count(), 3)
        self.assertEqual(JournalEntry.objects.get(pk=self.old.pk).insight.scores(), SCORES)
        self.assertEqual(pending_journal_entries(), [])

    def test_failures_are_counted_and_left_pending(self) -> None:
        def fake_analyze(text, child_id):
            if text == 'Old entry.':
                raise TextAnalysisError('timeout')
            return SCORES

        with mock.patch('sel.services.text_analysis.analyze_free_text', side_effect=fake_analyze):
            with self.assertLogs('sel.services.journal_analysis', level='WARNING'):
                stats = analyze_pending_journal_entries()
        self.assertEqual(stats.processed, 1)
        self.assertEqual(stats.failed, 1)
        self.assertEqual(stats.errors, [f'{self.old.pk}: timeout'])
        self.assertEqual(pending_journal_entries(), [self.old])

    @override_settings(SEL_ANALYSIS_URL='')
    def test_requires_configured_service(self) -> None:
        with self.assertRaises(TextAnalysisError):
            analyze_pending_journal_entries()


@override_settings(SEL_ANALYSIS_URL='https://analysis.example.com/analyze')
class AnalyzeJournalEntriesCommandTests(TestCase):
    def setUp(self) -> None:
        user = User.objects.create_user(username='parent@example.com', password='pass')
        parent = ParentProfile.objects.create(user=user)
        self.child = ChildProfile.objects.create(parent=parent, nickname='Sam')
        for day in range(3):
            JournalEntry.objects.create(child=self.child, content=f'Day {day}.', created_at=NOW + timedelta(days=day))

    def test_limit_is_respected(self) -> None:
        out = StringIO()
        with mock.patch('sel.services.text_analysis.analyze_free_text', return_value=SCORES) as analyze:
            call_command('analyze_journal_entries', limit=2, stdout=out)
        self.assertEqual(analyze.call_count, 2)
        self.assertEqual(SelInsight.objects.count(), 2)
        self.assertIn('2 processed', out.getvalue())
        remaining = JournalEntry.objects.filter(insight__isnull=True).get()
        self.assertEqual(remaining.content, 'Day 0.')

    def test_failures_are_reported(self) -> None:
        out = StringIO()
        with mock.patch(
            'sel.services.text_analysis.analyze_free_text',
            side_effect=TextAnalysisError('service down'),
        ):
            with self.assertLogs('sel.services.journal_analysis', level='WARNING'):
                call_command('analyze_journal_entries', stdout=out)
        self.assertIn('3 entries failed', out.getvalue())
        self.assertFalse(SelInsight.objects.exists())

    @override_settings(SEL_ANALYSIS_URL='')
    def test_not_configured(self) -> None:
        with self.assertRaises(CommandError):
            call_command('analyze_journal_entries', stdout=StringIO())

    def test_invalid_limit(self) -> None:
        with self.assertRaises(CommandError):
            call_command('analyze_journal_entries', limit=0, stdout=StringIO())

"""Tests for the progress orchestration service."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.contrib.auth.models import User
from django.db import DatabaseError
from django.test import TestCase, override_settings

from sel.models import ChildProfile, ChildProgress, JournalEntry, ParentProfile, ProgressEvent, SelInsight
from sel.services import progress as progress_service
from sel.services.errors import PersistenceError, ValidationError
from sel.services.progress import (
    load_child_progress,
    progress_summary,
    record_daily_check_in,
    record_journal_entry,
    record_mindfulness_session,
)
from sel.services.text_analysis import TextAnalysisError

NOW = datetime(2024, 5, 10, 9, 30, tzinfo=dt_timezone.utc)


class ProgressServiceTestCase(TestCase):
    def setUp(self) -> None:
        user = User.objects.create_user(username='parent@example.com', password='pass')
        parent = ParentProfile.objects.create(user=user, full_name='Pat Parent')
        self.child = ChildProfile.objects.create(
            parent=parent,
            nickname='Sam',
            creation_status=ChildProfile.CreationStatus.COMPLETED,
        )


class CheckInTests(ProgressServiceTestCase):
    def test_first_check_in(self) -> None:
        outcome = record_daily_check_in(self.child, now=NOW)
        self.assertTrue(outcome.applied)
        self.assertEqual(outcome.xp_delta, 10)
        self.assertEqual(outcome.streak_count, 1)
        self.assertIn('first_login', outcome.new_badges)
        self.assertIn('daily_hero', outcome.new_badges)
        self.assertIn('profile_creator', outcome.new_badges)

        stored = ChildProgress.objects.get(child=self.child)
        self.assertEqual(stored.xp_points, 10)
        self.assertEqual(stored.revision, 1)
        self.assertTrue(stored.checked_in_today(NOW))
        event = ProgressEvent.objects.get(pk=outcome.event_id)
        self.assertEqual(event.kind, 'check_in')
        self.assertEqual(event.xp_earned, 10)

    def test_same_day_repeat_is_noop(self) -> None:
        record_daily_check_in(self.child, now=NOW)
        outcome = record_daily_check_in(self.child, now=NOW + timedelta(hours=3))
        self.assertFalse(outcome.applied)
        self.assertEqual(outcome.xp_delta, 0)
        self.assertEqual(outcome.xp_points, 10)
        self.assertEqual(ProgressEvent.objects.filter(child=self.child).count(), 1)

    def test_consecutive_days_build_streak_with_milestone(self) -> None:
        outcomes = [record_daily_check_in(self.child, now=NOW + timedelta(days=day)) for day in range(3)]
        self.assertEqual([outcome.streak_count for outcome in outcomes], [1, 2, 3])
        self.assertEqual(outcomes[2].xp_delta, 20)
        self.assertIn('three_day_streak', outcomes[2].new_badges)
        self.assertEqual(load_child_progress(self.child).xp_points, 40)

    def test_gap_resets_streak(self) -> None:
        record_daily_check_in(self.child, now=NOW)
        record_daily_check_in(self.child, now=NOW + timedelta(days=1))
        outcome = record_daily_check_in(self.child, now=NOW + timedelta(days=4))
        self.assertEqual(outcome.streak_count, 1)

    def test_racing_check_ins_award_once(self) -> None:
        stale = load_child_progress(self.child)
        stale_copy = ChildProgress.objects.get(pk=stale.pk)
        real_loader = progress_service.load_child_progress
        calls = {'count': 0}

        def loader(child):
            calls['count'] += 1
            if calls['count'] == 1:
                # Another request commits its check-in after this one has loaded.
                record_daily_check_in(child, now=NOW)
                return stale_copy
            return real_loader(child)

        with mock.patch.object(progress_service, 'load_child_progress', side_effect=loader):
            outcome = progress_service.record_daily_check_in(self.child, now=NOW + timedelta(minutes=1))

        self.assertFalse(outcome.applied)
        stored = ChildProgress.objects.get(child=self.child)
        self.assertEqual(stored.xp_points, 10)
        self.assertEqual(stored.streak_count, 1)
        self.assertEqual(ProgressEvent.objects.filter(child=self.child, kind='check_in').count(), 1)

    @override_settings(SEL_PROGRESS_MAX_ATTEMPTS=2)
    def test_persistent_conflicts_raise(self) -> None:
        load_child_progress(self.child)

        def stale(child):
            return ChildProgress(pk=child.progress.pk, child=child, revision=99)

        with mock.patch.object(progress_service, 'load_child_progress', side_effect=stale):
            with self.assertRaises(PersistenceError):
                record_daily_check_in(self.child, now=NOW)
        self.assertEqual(ChildProgress.objects.get(child=self.child).xp_points, 0)

    def test_database_failure_raises_persistence_error(self) -> None:
        with mock.patch.object(ProgressEvent.objects, 'create', side_effect=DatabaseError('down')):
            with self.assertRaises(PersistenceError):
                record_daily_check_in(self.child, now=NOW)
        stored = ChildProgress.objects.get(child=self.child)
        self.assertEqual(stored.xp_points, 0)
        self.assertEqual(stored.revision, 0)

    def test_unsaved_child_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            record_daily_check_in(ChildProfile(nickname='ghost'), now=NOW)


@override_settings(SEL_ANALYSIS_URL='')
class ActivityTests(ProgressServiceTestCase):
    def test_journal_entry_awards_xp(self) -> None:
        outcome = record_journal_entry(self.child, '  Today I felt proud.  ', now=NOW)
        self.assertEqual(outcome.xp_delta, 15)
        self.assertIn('journal_starter', outcome.new_badges)
        entry = JournalEntry.objects.get(child=self.child)
        self.assertEqual(entry.content, 'Today I felt proud.')
        self.assertFalse(SelInsight.objects.exists())

    def test_empty_journal_entry_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            record_journal_entry(self.child, '   ', now=NOW)
        self.assertFalse(JournalEntry.objects.exists())

    def test_sections_only_journal_entry(self) -> None:
        record_journal_entry(self.child, '', now=NOW, sections={'gratitude': ' My dog. ', 'challenge': ''})
        entry = JournalEntry.objects.get(child=self.child)
        self.assertEqual(entry.gratitude, 'My dog.')
        self.assertEqual(entry.content, '')

    def test_unknown_journal_section_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            record_journal_entry(self.child, 'Hello', now=NOW, sections={'mood': 'happy'})
        self.assertFalse(JournalEntry.objects.exists())

    def test_journal_does_not_touch_streak(self) -> None:
        record_daily_check_in(self.child, now=NOW)
        outcome = record_journal_entry(self.child, 'Hello', now=NOW + timedelta(hours=1))
        self.assertEqual(outcome.streak_count, 1)
        self.assertEqual(load_child_progress(self.child).last_check_in, NOW)

    def test_all_activities_in_one_day_unlock_trio(self) -> None:
        record_daily_check_in(self.child, now=NOW)
        record_journal_entry(self.child, 'Hello', now=NOW + timedelta(hours=1))
        outcome = record_mindfulness_session(self.child, now=NOW + timedelta(hours=2))
        self.assertEqual(outcome.xp_delta, 10)
        self.assertIn('trio_champ', outcome.new_badges)
        self.assertEqual(outcome.xp_points, 35)

    def test_activities_on_different_days_do_not_unlock_trio(self) -> None:
        record_daily_check_in(self.child, now=NOW - timedelta(days=1))
        record_journal_entry(self.child, 'Hello', now=NOW)
        outcome = record_mindfulness_session(self.child, now=NOW)
        self.assertNotIn('trio_champ', outcome.new_badges)

    def test_summary(self) -> None:
        record_daily_check_in(self.child, now=NOW)
        summary = progress_summary(self.child, now=NOW)
        self.assertEqual(summary['xpPoints'], 10)
        self.assertEqual(summary['level'], 1)
        self.assertEqual(summary['levelProgress'], 20)
        self.assertTrue(summary['checkedInToday'])
        self.assertIn('Emotion Explorer', [badge['title'] for badge in summary['badges']])


@override_settings(SEL_ANALYSIS_URL='https://analysis.example.com/analyze')
class JournalAnalysisTests(ProgressServiceTestCase):
    SCORES = {
        'self_awareness': 0.9,
        'self_management': 0.8,
        'social_awareness': 0.75,
        'relationship_skills': 0.7,
        'responsible_decision_making': 0.72,
    }

    def test_scores_are_stored_and_unlock_badges(self) -> None:
        with mock.patch('sel.services.text_analysis.analyze_free_text', return_value=self.SCORES) as analyze:
            outcome = record_journal_entry(self.child, 'I helped my friend.', now=NOW)
        analyze.assert_called_once_with('I helped my friend.', self.child.pk)
        insight = SelInsight.objects.get(child=self.child)
        self.assertEqual(insight.scores(), self.SCORES)
        self.assertIn('sel_growth_champion', outcome.new_badges)

    def test_analysis_failure_still_records_entry(self) -> None:
        with mock.patch(
            'sel.services.text_analysis.analyze_free_text',
            side_effect=TextAnalysisError('timeout'),
        ):
            with self.assertLogs('sel.services.progress', level='WARNING'):
                outcome = record_journal_entry(self.child, 'A quiet day.', now=NOW)
        self.assertTrue(outcome.applied)
        self.assertEqual(JournalEntry.objects.filter(child=self.child).count(), 1)
        self.assertFalse(SelInsight.objects.exists())

    def test_sections_are_analysed_together_and_linked(self) -> None:
        sections = {'went_well': 'I finished my puzzle.', 'tomorrow_plan': 'Call grandma.'}
        with mock.patch('sel.services.text_analysis.analyze_free_text', return_value=self.SCORES) as analyze:
            record_journal_entry(self.child, 'Good day.', now=NOW, sections=sections)
        text = analyze.call_args.args[0]
        self.assertEqual(
            text,
            'Journal Entry:\n'
            'What went well: I finished my puzzle.\n'
            "Tomorrow's plan: Call grandma.\n"
            'Additional content: Good day.',
        )
        entry = JournalEntry.objects.get(child=self.child)
        self.assertEqual(entry.insight.source_text, text)

"""Tests for assessment submission, status and comparison lookup."""

from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from unittest import mock

from django.contrib.auth.models import User
from django.db import DatabaseError
from django.test import TestCase, override_settings

from sel.models import AdminSetting, AssessmentAnswer, AssessmentQuestion, AssessmentResult, ChildProfile, ParentProfile
from sel.services.assessments import (
    assessment_status,
    get_comparison_view,
    is_assessment_enabled,
    load_assessment_questions,
    load_assessment_result,
    submit_assessment,
)
from sel.services.comparison import AVAILABLE, DISABLED, POST_PENDING, PRE_PENDING
from sel.services.errors import PersistenceError, ValidationError
from sel.services.question_bank import install_default_questions
from sel.services.scoring import Answer, QuestionRef, score_answers

NOW = datetime(2024, 5, 10, 9, 30, tzinfo=dt_timezone.utc)


def answers_for(questions, value):
    return [Answer(question.question_code, value) for question in questions]


class AssessmentServiceTestCase(TestCase):
    def setUp(self) -> None:
        install_default_questions()
        self.questions = load_assessment_questions()
        user = User.objects.create_user(username='parent@example.com', password='pass')
        parent = ParentProfile.objects.create(user=user)
        self.child = ChildProfile.objects.create(parent=parent, nickname='Sam', assessments_enabled=True)


class SubmitAssessmentTests(AssessmentServiceTestCase):
    def test_round_trip_matches_scorer(self) -> None:
        answers = [
            Answer(question.question_code, (index % 5) + 1)
            for index, question in enumerate(self.questions)
        ]
        result_id = submit_assessment(self.child, 'PRE', answers, now=NOW)

        result = load_assessment_result(self.child, 'PRE')
        self.assertEqual(result.pk, result_id)
        self.assertTrue(result.is_completed)
        self.assertEqual(result.completion_date, NOW)
        expected = score_answers(
            [QuestionRef(question.question_code, question.dimension) for question in self.questions],
            answers,
        )
        self.assertEqual(result.scores_by_dimension, expected)
        self.assertEqual(result.answers.count(), len(self.questions))

    def test_all_fives(self) -> None:
        submit_assessment(self.child, 'PRE', answers_for(self.questions, 5), now=NOW)
        scores = load_assessment_result(self.child, 'PRE').scores_by_dimension
        self.assertEqual(set(scores.values()), {100})

    def test_resubmission_overwrites(self) -> None:
        first = submit_assessment(self.child, 'PRE', answers_for(self.questions, 1), now=NOW)
        second = submit_assessment(self.child, 'pre', answers_for(self.questions, 4), now=NOW)
        self.assertEqual(first, second)
        self.assertEqual(AssessmentResult.objects.filter(child=self.child).count(), 1)
        self.assertEqual(set(AssessmentAnswer.objects.values_list('answer_value', flat=True)), {4})

    def test_mapping_answers_are_accepted(self) -> None:
        payload = [{'question_code': question.question_code, 'answer_value': 3} for question in self.questions]
        submit_assessment(self.child, 'POST', payload, now=NOW)
        self.assertEqual(set(load_assessment_result(self.child, 'POST').scores_by_dimension.values()), {60})

    def test_invalid_submissions_write_nothing(self) -> None:
        cases = [
            ('PRE', []),
            ('MID', answers_for(self.questions, 3)),
            ('PRE', answers_for(self.questions[:3], 3)),
            ('PRE', answers_for(self.questions, 3) + [Answer(self.questions[0].question_code, 2)]),
            ('PRE', answers_for(self.questions, 3) + [Answer('NOPE', 2)]),
            ('PRE', answers_for(self.questions[:-1], 3) + [Answer(self.questions[-1].question_code, 7)]),
        ]
        for assessment_type, answers in cases:
            with self.subTest(assessment_type=assessment_type, count=len(answers)):
                with self.assertRaises(ValidationError):
                    submit_assessment(self.child, assessment_type, answers, now=NOW)
        self.assertFalse(AssessmentResult.objects.exists())

    def test_partial_submission_when_allowed(self) -> None:
        sa_questions = [question for question in self.questions if question.dimension == 'self_awareness']
        submit_assessment(self.child, 'PRE', answers_for(sa_questions, 5), now=NOW, require_complete=False)
        self.assertEqual(load_assessment_result(self.child, 'PRE').scores_by_dimension, {'self_awareness': 100})

    def test_unknown_type_keeps_cause(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            submit_assessment(self.child, 'MID', answers_for(self.questions, 3), now=NOW)
        self.assertIsInstance(ctx.exception.__cause__, ValueError)

    def test_missing_child(self) -> None:
        with self.assertRaises(ValidationError):
            submit_assessment(None, 'PRE', answers_for(self.questions, 3))

    def test_database_failure(self) -> None:
        with mock.patch.object(AssessmentAnswer.objects, 'bulk_create', side_effect=DatabaseError('down')):
            with self.assertRaises(PersistenceError):
                submit_assessment(self.child, 'PRE', answers_for(self.questions, 3), now=NOW)
        self.assertFalse(AssessmentResult.objects.exists())


class AssessmentFlagTests(AssessmentServiceTestCase):
    def test_child_override_wins(self) -> None:
        AdminSetting.objects.create(setting_key=AdminSetting.PRE_POST_ASSESSMENT_ENABLED, setting_value=False)
        self.assertTrue(is_assessment_enabled(self.child))

    def test_global_setting(self) -> None:
        self.child.assessments_enabled = None
        AdminSetting.objects.create(setting_key=AdminSetting.PRE_POST_ASSESSMENT_ENABLED, setting_value='true')
        self.assertTrue(is_assessment_enabled(self.child))

    @override_settings(SEL_ASSESSMENTS_ENABLED_DEFAULT=False)
    def test_default_when_unset(self) -> None:
        self.child.assessments_enabled = None
        self.assertFalse(is_assessment_enabled(self.child))


class AssessmentStatusTests(AssessmentServiceTestCase):
    def test_next_assessment_sequence(self) -> None:
        self.assertEqual(assessment_status(self.child).next_assessment, 'PRE')
        submit_assessment(self.child, 'PRE', answers_for(self.questions, 3), now=NOW)
        state = assessment_status(self.child)
        self.assertEqual(state.next_assessment, 'POST')
        self.assertEqual(state.pre_status, 'Completed')
        self.assertEqual(state.post_status, 'Not Started')
        submit_assessment(self.child, 'POST', answers_for(self.questions, 4), now=NOW)
        self.assertIsNone(assessment_status(self.child).next_assessment)

    def test_disabled_has_no_next(self) -> None:
        self.child.assessments_enabled = False
        state = assessment_status(self.child)
        self.assertFalse(state.enabled)
        self.assertIsNone(state.next_assessment)


class ComparisonViewTests(AssessmentServiceTestCase):
    def test_lifecycle(self) -> None:
        self.assertEqual(get_comparison_view(self.child).status, PRE_PENDING)
        submit_assessment(self.child, 'PRE', answers_for(self.questions, 3), now=NOW)
        pending = get_comparison_view(self.child)
        self.assertEqual(pending.status, POST_PENDING)
        self.assertEqual(set(pending.pre.scores.values()), {60})

        submit_assessment(self.child, 'POST', answers_for(self.questions, 4), now=NOW)
        view = get_comparison_view(self.child)
        self.assertEqual(view.status, AVAILABLE)
        self.assertEqual(len(view.comparison), 5)
        self.assertTrue(all(item.change == 20 for item in view.comparison))
        self.assertEqual(view.overall_change_percent, 33)

    def test_disabled_flag_checked_first(self) -> None:
        submit_assessment(self.child, 'PRE', answers_for(self.questions, 3), now=NOW)
        self.child.assessments_enabled = False
        with mock.patch('sel.services.assessments.load_assessment_result') as loader:
            view = get_comparison_view(self.child)
        self.assertEqual(view.status, DISABLED)
        loader.assert_not_called()

    def test_questions_are_ordered(self) -> None:
        self.assertEqual(len(self.questions), 15)
        self.assertEqual(AssessmentQuestion.objects.count(), 15)
        self.assertEqual(self.questions[0].dimension, 'relationship_skills')

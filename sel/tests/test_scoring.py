"""Tests for Likert answer scoring."""

from __future__ import annotations

from django.test import SimpleTestCase

from sel.services.errors import ValidationError
from sel.services.scoring import Answer, QuestionRef, round_half_up, score_answers

QUESTIONS = [
    QuestionRef('SA1', 'self_awareness'),
    QuestionRef('SA2', 'self_awareness'),
    QuestionRef('SM1', 'self_management'),
    QuestionRef('SO1', 'social_awareness'),
    QuestionRef('RS1', 'relationship_skills'),
    QuestionRef('RD1', 'responsible_decision_making'),
]


class ScoreAnswersTests(SimpleTestCase):
    def test_all_fives_score_hundred(self) -> None:
        answers = [Answer(question.question_code, 5) for question in QUESTIONS]
        scores = score_answers(QUESTIONS, answers)
        self.assertEqual(set(scores.values()), {100})
        self.assertEqual(len(scores), 5)

    def test_all_ones_score_twenty(self) -> None:
        answers = [Answer(question.question_code, 1) for question in QUESTIONS]
        self.assertEqual(set(score_answers(QUESTIONS, answers).values()), {20})

    def test_dimension_mean_rounds_half_up(self) -> None:
        # mean 3.5 -> 70
        scores = score_answers(QUESTIONS, [Answer('SA1', 3), Answer('SA2', 4)])
        self.assertEqual(scores, {'self_awareness': 70})

    def test_unanswered_dimensions_are_omitted(self) -> None:
        scores = score_answers(QUESTIONS, [Answer('SM1', 4)])
        self.assertEqual(scores, {'self_management': 80})

    def test_unknown_codes_are_ignored(self) -> None:
        scores = score_answers(QUESTIONS, [Answer('SM1', 2), Answer('XX9', 5)])
        self.assertEqual(scores, {'self_management': 40})

    def test_out_of_range_value(self) -> None:
        with self.assertRaises(ValidationError):
            score_answers(QUESTIONS, [Answer('SA1', 6)])
        with self.assertRaises(ValidationError):
            score_answers(QUESTIONS, [Answer('SA1', 0)])

    def test_non_integer_values(self) -> None:
        with self.assertRaises(ValidationError):
            score_answers(QUESTIONS, [Answer('SA1', '4')])
        with self.assertRaises(ValidationError):
            score_answers(QUESTIONS, [Answer('SA1', True)])

    def test_unknown_dimension(self) -> None:
        with self.assertRaises(ValidationError):
            score_answers([QuestionRef('ZZ1', 'empathy')], [Answer('ZZ1', 3)])


class RoundHalfUpTests(SimpleTestCase):
    def test_halves(self) -> None:
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(-2.5), -2)
        self.assertEqual(round_half_up(62.4), 62)

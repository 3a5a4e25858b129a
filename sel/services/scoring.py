"""Likert answer scoring for the pre/post SEL assessments."""

from __future__ import annotations

import math
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from ..choices import DIMENSION_ORDER
from .errors import ValidationError

MIN_ANSWER = 1
MAX_ANSWER = 5


@dataclass(frozen=True)
class QuestionRef:
    """Minimal view of an assessment question used for scoring."""

    question_code: str
    dimension: str


@dataclass(frozen=True)
class Answer:
    question_code: str
    answer_value: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (``2.5 -> 3``, ``-2.5 -> -2``)."""

    return int(math.floor(value + 0.5))


def validate_answer_value(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f'Answer values must be integers, got {value!r}')
    if not MIN_ANSWER <= value <= MAX_ANSWER:
        raise ValidationError(f'Answer values must be between {MIN_ANSWER} and {MAX_ANSWER}, got {value}')
    return value


def _group_questions(questions: Iterable[QuestionRef]) -> "OrderedDict[str, List[str]]":
    grouped: "OrderedDict[str, List[str]]" = OrderedDict((dimension, []) for dimension in DIMENSION_ORDER)
    for question in questions:
        dimension = str(question.dimension)
        if dimension not in grouped:
            raise ValidationError(
                f'Question {question.question_code} declares an unknown dimension: {dimension!r}'
            )
        grouped[dimension].append(question.question_code)
    return grouped


def score_answers(questions: Sequence[QuestionRef], answers: Sequence[Answer]) -> Dict[str, int]:
    """Convert Likert answers into 0-100 scores per SEL dimension.

    Each dimension score is the mean of its answered questions divided by
    five, as a rounded percentage.  Dimensions without a single answered
    question are left out rather than scored as zero, and answers for
    codes that match no question are ignored.
    """

    values_by_code: Dict[str, int] = {}
    for answer in answers:
        values_by_code[answer.question_code] = validate_answer_value(answer.answer_value)

    scores: Dict[str, int] = {}
    for dimension, codes in _group_questions(questions).items():
        matched = [values_by_code[code] for code in codes if code in values_by_code]
        if not matched:
            continue
        average = sum(matched) / len(matched)
        scores[dimension] = round_half_up(average / MAX_ANSWER * 100)
    return scores


__all__ = ['Answer', 'QuestionRef', 'round_half_up', 'score_answers', 'validate_answer_value']

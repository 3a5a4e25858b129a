"""Storage and lookup for the pre/post SEL assessments.

Scoring and comparison are pure and live in :mod:`.scoring` and
:mod:`.comparison`; this module validates submissions against the stored
question bank, writes results and answers in a single transaction and
resolves the pre/post feature flag.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..choices import AssessmentStatus, AssessmentType
from ..models import AdminSetting, AssessmentAnswer, AssessmentQuestion, AssessmentResult, ChildProfile
from .comparison import AssessmentSnapshot, ComparisonView, compare_assessments
from .errors import PersistenceError, ValidationError
from .scoring import Answer, QuestionRef, score_answers, validate_answer_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssessmentState:
    """Which assessment a child should take next."""

    enabled: bool
    next_assessment: Optional[str]
    pre_status: str
    post_status: str

    def as_dict(self) -> Dict[str, object]:
        return {
            'enabled': self.enabled,
            'nextAssessment': self.next_assessment,
            'preStatus': self.pre_status,
            'postStatus': self.post_status,
        }


def _require_child(child: Optional[ChildProfile]) -> ChildProfile:
    if child is None or child.pk is None:
        raise ValidationError('A saved child profile is required.')
    return child


def _clean_type(assessment_type: str) -> str:
    try:
        return AssessmentType(str(assessment_type).upper()).value
    except ValueError as exc:
        raise ValidationError(f'Unknown assessment type: {assessment_type!r}') from exc


def load_assessment_questions() -> List[AssessmentQuestion]:
    """Return the question bank ordered by dimension and display order."""

    try:
        return list(AssessmentQuestion.objects.order_by('dimension', 'display_order', 'question_code'))
    except DatabaseError as exc:
        raise PersistenceError(f'Could not load assessment questions: {exc}') from exc


def _clean_answers(
    answers: Iterable[Answer | Mapping[str, object]],
    questions: Sequence[AssessmentQuestion],
    *,
    require_complete: bool,
) -> List[Answer]:
    known_codes = {question.question_code for question in questions}
    cleaned: List[Answer] = []
    seen = set()
    for item in answers:
        if isinstance(item, Answer):
            code, value = item.question_code, item.answer_value
        else:
            code, value = item.get('question_code'), item.get('answer_value')
        code = str(code or '').strip()
        if not code:
            raise ValidationError('Every answer needs a question code.')
        if code in seen:
            raise ValidationError(f'Question {code} was answered more than once.')
        if code not in known_codes:
            raise ValidationError(f'Unknown question code: {code}')
        seen.add(code)
        cleaned.append(Answer(question_code=code, answer_value=validate_answer_value(value)))

    if not cleaned:
        raise ValidationError('An assessment needs at least one answer.')
    if require_complete:
        missing = sorted(known_codes - seen)
        if missing:
            raise ValidationError(f"Missing answers for: {', '.join(missing)}")
    return cleaned


def upsert_assessment_result(
    child: ChildProfile,
    assessment_type: str,
    scores: Mapping[str, int],
    answers: Sequence[Answer],
    *,
    completed_at: datetime,
) -> AssessmentResult:
    """Create or overwrite the result row of ``(child, assessment_type)``.

    Existing answers of the row are replaced.  Must run inside a transaction.
    """

    result, _ = AssessmentResult.objects.update_or_create(
        child=child,
        assessment_type=assessment_type,
        defaults={
            'status': AssessmentStatus.COMPLETED,
            'completion_date': completed_at,
            'scores_by_dimension': dict(scores),
        },
    )
    result.answers.all().delete()
    AssessmentAnswer.objects.bulk_create(
        AssessmentAnswer(result=result, question_code=answer.question_code, answer_value=answer.answer_value)
        for answer in answers
    )
    return result


def submit_assessment(
    child: ChildProfile,
    assessment_type: str,
    answers: Iterable[Answer | Mapping[str, object]],
    *,
    now: Optional[datetime] = None,
    require_complete: bool = True,
) -> int:
    """Validate, score and store an assessment; return the result id."""

    _require_child(child)
    kind = _clean_type(assessment_type)
    questions = load_assessment_questions()
    if not questions:
        raise ValidationError('No assessment questions are configured.')
    cleaned = _clean_answers(answers, questions, require_complete=require_complete)
    scores = score_answers(
        [QuestionRef(question.question_code, question.dimension) for question in questions],
        cleaned,
    )
    now = now or timezone.now()

    try:
        with transaction.atomic():
            result = upsert_assessment_result(child, kind, scores, cleaned, completed_at=now)
    except DatabaseError as exc:
        logger.warning('Failed to store %s assessment for child %s: %s', kind, child.pk, exc)
        raise PersistenceError(f'Could not store {kind} assessment for child {child.pk}: {exc}') from exc

    logger.info('Stored %s assessment for child %s with scores %s', kind, child.pk, scores)
    return result.pk


def load_assessment_result(child: ChildProfile, assessment_type: str) -> Optional[AssessmentResult]:
    _require_child(child)
    kind = _clean_type(assessment_type)
    try:
        return AssessmentResult.objects.filter(child=child, assessment_type=kind).first()
    except DatabaseError as exc:
        raise PersistenceError(f'Could not load {kind} assessment for child {child.pk}: {exc}') from exc


def snapshot_from_result(result: Optional[AssessmentResult]) -> Optional[AssessmentSnapshot]:
    if result is None:
        return None
    return AssessmentSnapshot(
        assessment_type=result.assessment_type,
        status=result.status,
        completion_date=result.completion_date,
        scores=dict(result.scores_by_dimension or {}),
    )


def _coerce_flag(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().casefold() in {'1', 'true', 'yes', 'on'}
    return bool(value)


def is_assessment_enabled(child: Optional[ChildProfile] = None) -> bool:
    """Resolve the pre/post flag: child override, global setting, default."""

    if child is not None and child.assessments_enabled is not None:
        return bool(child.assessments_enabled)
    try:
        setting = AdminSetting.objects.filter(setting_key=AdminSetting.PRE_POST_ASSESSMENT_ENABLED).first()
    except DatabaseError as exc:
        raise PersistenceError(f'Could not read assessment settings: {exc}') from exc
    if setting is not None and setting.setting_value is not None:
        return _coerce_flag(setting.setting_value)
    return bool(getattr(settings, 'SEL_ASSESSMENTS_ENABLED_DEFAULT', False))


def assessment_status(child: ChildProfile) -> AssessmentState:
    """Report which assessment is due for ``child``."""

    _require_child(child)
    enabled = is_assessment_enabled(child)
    pre = load_assessment_result(child, AssessmentType.PRE)
    post = load_assessment_result(child, AssessmentType.POST)
    pre_status = pre.status if pre else AssessmentStatus.NOT_STARTED.value
    post_status = post.status if post else AssessmentStatus.NOT_STARTED.value

    next_assessment: Optional[str] = None
    if enabled:
        if pre is None or not pre.is_completed:
            next_assessment = AssessmentType.PRE.value
        elif post is None or not post.is_completed:
            next_assessment = AssessmentType.POST.value
    return AssessmentState(
        enabled=enabled,
        next_assessment=next_assessment,
        pre_status=str(pre_status),
        post_status=str(post_status),
    )


def get_comparison_view(child: ChildProfile) -> ComparisonView:
    """Build the pre/post comparison for ``child``; nothing is stored."""

    _require_child(child)
    if not is_assessment_enabled(child):
        return compare_assessments(None, None, enabled=False)
    pre = snapshot_from_result(load_assessment_result(child, AssessmentType.PRE))
    post = snapshot_from_result(load_assessment_result(child, AssessmentType.POST))
    return compare_assessments(pre, post)


__all__ = [
    'AssessmentState',
    'assessment_status',
    'get_comparison_view',
    'is_assessment_enabled',
    'load_assessment_questions',
    'load_assessment_result',
    'snapshot_from_result',
    'submit_assessment',
    'upsert_assessment_result',
]

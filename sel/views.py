"""JSON endpoints for the Sprout SEL application.

Every endpoint requires an authenticated parent and only exposes children
owned by that parent.  Service errors are mapped onto HTTP status codes:
invalid input answers ``400`` and storage failures ``503`` so the app can
retry later.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from django.contrib.auth.decorators import login_required
from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .choices import AssessmentType
from .forms import AssessmentSubmissionForm, JournalEntryForm, ParentInfoForm
from .models import ChildProfile
from .services import assessments, parent_cache, progress
from .services.comparison import comparison_payload
from .services.errors import PersistenceError, ValidationError

logger = logging.getLogger(__name__)


def _error(message: str, status: int) -> JsonResponse:
    return JsonResponse({'error': message}, status=status)


def _service_error(exc: Exception) -> JsonResponse:
    if isinstance(exc, ValidationError):
        return _error(str(exc), 400)
    logger.warning('Service unavailable: %s', exc)
    return _error('The service is temporarily unavailable. Please try again.', 503)


def _read_payload(request: HttpRequest) -> Optional[Dict[str, Any]]:
    try:
        payload = json.loads(request.body.decode('utf-8')) if request.body else {}
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def _get_child(request: HttpRequest, child_id: int) -> Optional[ChildProfile]:
    return ChildProfile.objects.filter(pk=child_id, parent__user=request.user).first()


def _form_errors(form) -> str:
    messages = []
    for errors in form.errors.values():
        messages.extend(str(error) for error in errors)
    return ' '.join(dict.fromkeys(messages)) or 'Invalid payload.'


@login_required
@require_POST
def daily_check_in(request: HttpRequest, child_id: int) -> JsonResponse:
    child = _get_child(request, child_id)
    if child is None:
        return _error('Child not found.', 404)
    try:
        outcome = progress.record_daily_check_in(child)
    except (ValidationError, PersistenceError) as exc:
        return _service_error(exc)
    return JsonResponse(outcome.as_dict())


@login_required
@require_POST
def journal_entry(request: HttpRequest, child_id: int) -> JsonResponse:
    """Store a journal entry and award its XP."""

    child = _get_child(request, child_id)
    if child is None:
        return _error('Child not found.', 404)
    payload = _read_payload(request)
    if payload is None:
        return _error('Invalid payload.', 400)
    form = JournalEntryForm(payload)
    if not form.is_valid():
        return _error(_form_errors(form), 400)
    try:
        outcome = progress.record_journal_entry(
            child,
            form.cleaned_data['content'],
            sections=form.sections(),
        )
    except (ValidationError, PersistenceError) as exc:
        return _service_error(exc)
    return JsonResponse(outcome.as_dict(), status=201)


@login_required
@require_POST
def mindfulness_session(request: HttpRequest, child_id: int) -> JsonResponse:
    child = _get_child(request, child_id)
    if child is None:
        return _error('Child not found.', 404)
    try:
        outcome = progress.record_mindfulness_session(child)
    except (ValidationError, PersistenceError) as exc:
        return _service_error(exc)
    return JsonResponse(outcome.as_dict())


@login_required
@require_GET
def progress_summary(request: HttpRequest, child_id: int) -> JsonResponse:
    child = _get_child(request, child_id)
    if child is None:
        return _error('Child not found.', 404)
    try:
        payload = progress.progress_summary(child)
    except (ValidationError, PersistenceError) as exc:
        return _service_error(exc)
    return JsonResponse(payload)


@login_required
@require_GET
def assessment_questions(request: HttpRequest) -> JsonResponse:
    try:
        questions = assessments.load_assessment_questions()
    except PersistenceError as exc:
        return _service_error(exc)
    return JsonResponse(
        {
            'questions': [
                {
                    'questionCode': question.question_code,
                    'dimension': question.dimension,
                    'questionText': question.question_text,
                    'displayOrder': question.display_order,
                }
                for question in questions
            ]
        }
    )


@login_required
@require_POST
def submit_assessment(request: HttpRequest, child_id: int, assessment_type: str) -> JsonResponse:
    """Score and store a PRE or POST assessment.

    The body is ``{"answers": {"SA1": 4, ...}}`` or a list of
    ``{"question_code": ..., "answer_value": ...}`` objects (camelCase keys
    are accepted too).
    """

    child = _get_child(request, child_id)
    if child is None:
        return _error('Child not found.', 404)
    if assessment_type.upper() not in AssessmentType.values:
        return _error(f'Unknown assessment type: {assessment_type}', 400)
    payload = _read_payload(request)
    if payload is None:
        return _error('Invalid payload.', 400)

    try:
        if not assessments.is_assessment_enabled(child):
            return _error('Assessments are not enabled for this child.', 403)
        questions = assessments.load_assessment_questions()
        form = AssessmentSubmissionForm(
            AssessmentSubmissionForm.data_from_answers(payload.get('answers')),
            questions=questions,
        )
        if not form.is_valid():
            return _error(_form_errors(form), 400)
        result_id = assessments.submit_assessment(child, assessment_type, form.answers())
        result = assessments.load_assessment_result(child, assessment_type)
    except (ValidationError, PersistenceError) as exc:
        return _service_error(exc)
    return JsonResponse(
        {
            'resultId': result_id,
            'assessmentType': result.assessment_type,
            'status': result.status,
            'scores': result.scores_by_dimension,
        },
        status=201,
    )


@login_required
@require_GET
def assessment_status(request: HttpRequest, child_id: int) -> JsonResponse:
    child = _get_child(request, child_id)
    if child is None:
        return _error('Child not found.', 404)
    try:
        state = assessments.assessment_status(child)
    except (ValidationError, PersistenceError) as exc:
        return _service_error(exc)
    return JsonResponse(state.as_dict())


@login_required
@require_GET
def assessment_comparison(request: HttpRequest, child_id: int) -> JsonResponse:
    child = _get_child(request, child_id)
    if child is None:
        return _error('Child not found.', 404)
    try:
        view = assessments.get_comparison_view(child)
    except (ValidationError, PersistenceError) as exc:
        return _service_error(exc)
    return JsonResponse(comparison_payload(view))


@login_required
@require_http_methods(['GET', 'POST'])
def parent_info(request: HttpRequest) -> JsonResponse:
    """Return the cached parent info, or update it on POST."""

    try:
        if request.method == 'GET':
            return JsonResponse(parent_cache.get_parent_info(request.user))
        payload = _read_payload(request)
        if payload is None:
            return _error('Invalid payload.', 400)
        form = ParentInfoForm(payload)
        if not form.is_valid():
            return _error(_form_errors(form), 400)
        fields = {name: form.cleaned_data[name] for name in form.fields if name in payload}
        return JsonResponse(parent_cache.update_parent_info(request.user, **fields))
    except (ValidationError, PersistenceError) as exc:
        return _service_error(exc)

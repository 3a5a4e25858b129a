"""Client for the external free-text SEL analysis service.

The service reads a journal entry and answers with one fraction in
``[0, 1]`` per SEL dimension.  Only the request/response contract lives
here; how the scores are produced is up to the remote service.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from django.conf import settings

from ..choices import DIMENSION_ORDER

logger = logging.getLogger(__name__)


class TextAnalysisError(Exception):
    """Raised when the analysis service cannot produce scores."""


def is_configured() -> bool:
    return bool(getattr(settings, 'SEL_ANALYSIS_URL', ''))


def _clamp(value: Any, dimension: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise TextAnalysisError(f'Non-numeric score for {dimension}: {value!r}')
    return min(max(number, 0.0), 1.0)


def parse_scores(payload: Dict[str, Any]) -> Dict[str, float]:
    """Extract the five dimension fractions from a service response."""

    if not isinstance(payload, dict):
        raise TextAnalysisError('Unexpected response format from analysis service.')
    if payload.get('error'):
        raise TextAnalysisError(str(payload['error']))
    data = payload.get('data', payload)
    if not isinstance(data, dict):
        raise TextAnalysisError('Unexpected response format from analysis service.')
    missing = [dimension for dimension in DIMENSION_ORDER if dimension not in data]
    if missing:
        raise TextAnalysisError(f"Analysis response is missing: {', '.join(missing)}")
    return {dimension: _clamp(data[dimension], dimension) for dimension in DIMENSION_ORDER}


def analyze_free_text(text: str, child_id: Optional[int] = None) -> Dict[str, float]:
    """Send ``text`` to the analysis service and return per-dimension fractions."""

    url = getattr(settings, 'SEL_ANALYSIS_URL', '')
    if not url:
        raise TextAnalysisError('SEL_ANALYSIS_URL setting is not configured.')
    if not text or not text.strip():
        raise TextAnalysisError('Cannot analyse empty text.')

    session = requests.Session()
    session.headers.update({'Accept': 'application/json'})
    token = getattr(settings, 'SEL_ANALYSIS_TOKEN', '')
    if token:
        session.headers.update({'Authorization': f'Bearer {token}'})
    timeout = getattr(settings, 'SEL_ANALYSIS_TIMEOUT', 30)

    body: Dict[str, Any] = {'journalText': text}
    if child_id is not None:
        body['childId'] = str(child_id)
    try:
        response = session.post(url, json=body, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise TextAnalysisError(f'Failed to reach analysis service: {exc}') from exc
    try:
        payload = response.json()
    except ValueError as exc:
        raise TextAnalysisError('Analysis service returned invalid JSON.') from exc

    scores = parse_scores(payload)
    logger.debug('Received SEL analysis for child %s: %s', child_id, scores)
    return scores


__all__ = ['TextAnalysisError', 'analyze_free_text', 'is_configured', 'parse_scores']

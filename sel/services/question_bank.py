"""Default assessment questions and workbook imports for the question bank."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from django.db import DatabaseError, transaction
from openpyxl import load_workbook

from ..choices import Dimension
from ..models import AssessmentQuestion

REQUIRED_HEADERS = ['question_code', 'dimension', 'question_text']
HEADER_ALIASES = {
    'code': 'question_code',
    'question code': 'question_code',
    'id': 'question_code',
    'skill': 'dimension',
    'competency': 'dimension',
    'question': 'question_text',
    'text': 'question_text',
    'question text': 'question_text',
    'order': 'display_order',
    'display order': 'display_order',
    'position': 'display_order',
}
DIMENSION_ALIASES = {
    **{value: value for value in Dimension.values},
    **{label.casefold(): value for value, label in Dimension.choices},
    'self awareness': Dimension.SELF_AWARENESS.value,
    'self management': Dimension.SELF_MANAGEMENT.value,
    'relationships': Dimension.RELATIONSHIP_SKILLS.value,
    'decision making': Dimension.RESPONSIBLE_DECISION_MAKING.value,
}


class QuestionBankError(Exception):
    """Raised when the question bank cannot be installed or imported."""


@dataclass(frozen=True)
class QuestionDefinition:
    question_code: str
    dimension: str
    question_text: str
    display_order: int = 0


@dataclass
class QuestionImportStats:
    created: int = 0
    updated: int = 0
    skipped: int = 0


DEFAULT_QUESTIONS: List[QuestionDefinition] = [
    QuestionDefinition('SA1', Dimension.SELF_AWARENESS, 'I can tell how I am feeling.', 1),
    QuestionDefinition('SA2', Dimension.SELF_AWARENESS, 'I know what I am good at.', 2),
    QuestionDefinition('SA3', Dimension.SELF_AWARENESS, 'I notice when my feelings change during the day.', 3),
    QuestionDefinition('SM1', Dimension.SELF_MANAGEMENT, 'I can calm myself down when I am upset.', 1),
    QuestionDefinition('SM2', Dimension.SELF_MANAGEMENT, 'I keep trying when something is hard.', 2),
    QuestionDefinition('SM3', Dimension.SELF_MANAGEMENT, 'I can wait for my turn.', 3),
    QuestionDefinition('SO1', Dimension.SOCIAL_AWARENESS, 'I can tell how other people are feeling.', 1),
    QuestionDefinition('SO2', Dimension.SOCIAL_AWARENESS, 'I care about how my friends feel.', 2),
    QuestionDefinition('SO3', Dimension.SOCIAL_AWARENESS, 'I respect people who are different from me.', 3),
    QuestionDefinition('RS1', Dimension.RELATIONSHIP_SKILLS, 'I can make new friends.', 1),
    QuestionDefinition('RS2', Dimension.RELATIONSHIP_SKILLS, 'I listen when others are talking.', 2),
    QuestionDefinition('RS3', Dimension.RELATIONSHIP_SKILLS, 'I can work out a disagreement with a friend.', 3),
    QuestionDefinition('RD1', Dimension.RESPONSIBLE_DECISION_MAKING, 'I think before I act.', 1),
    QuestionDefinition('RD2', Dimension.RESPONSIBLE_DECISION_MAKING, 'I think about how my choices affect others.', 2),
    QuestionDefinition('RD3', Dimension.RESPONSIBLE_DECISION_MAKING, 'I can say sorry when I make a mistake.', 3),
]


def _normalise_header(value: Any) -> str:
    text = str(value).strip().casefold().replace('-', ' ') if value is not None else ''
    return HEADER_ALIASES.get(text, text.replace(' ', '_'))


def _clean_dimension(value: Any) -> Optional[str]:
    text = str(value).strip().casefold().replace('-', ' ') if value is not None else ''
    return DIMENSION_ALIASES.get(text) or DIMENSION_ALIASES.get(text.replace(' ', '_'))


def _coerce_order(value: Any) -> int:
    if value in (None, ''):
        return 0
    try:
        return max(int(float(str(value).strip())), 0)
    except (TypeError, ValueError):
        return 0


def _upsert(definitions: Iterable[QuestionDefinition]) -> QuestionImportStats:
    stats = QuestionImportStats()
    try:
        with transaction.atomic():
            for definition in definitions:
                _, created = AssessmentQuestion.objects.update_or_create(
                    question_code=definition.question_code,
                    defaults={
                        'dimension': str(definition.dimension),
                        'question_text': definition.question_text,
                        'display_order': definition.display_order,
                    },
                )
                if created:
                    stats.created += 1
                else:
                    stats.updated += 1
    except DatabaseError as exc:
        raise QuestionBankError(f'Could not store assessment questions: {exc}') from exc
    return stats


def install_default_questions() -> QuestionImportStats:
    """Create or refresh the built-in question bank."""

    return _upsert(DEFAULT_QUESTIONS)


def import_questions_workbook(workbook_file) -> QuestionImportStats:
    """Upsert questions from the first sheet of an Excel workbook.

    The header row must name ``question_code``, ``dimension`` and
    ``question_text`` (common aliases are accepted); ``display_order`` is
    optional.  Rows without a code or text, rows with an unknown dimension
    and repeated codes are skipped.
    """

    try:
        workbook = load_workbook(workbook_file, read_only=True, data_only=True)
    except Exception as exc:  # pragma: no cover - openpyxl raises many types
        raise QuestionBankError('The workbook could not be read.') from exc

    worksheet = workbook.active
    rows = list(worksheet.iter_rows(values_only=True))
    workbook.close()
    if not rows:
        raise QuestionBankError('The workbook is empty.')

    header_map: Dict[str, int] = {}
    for idx, raw_header in enumerate(rows[0]):
        name = _normalise_header(raw_header)
        if name and name not in header_map:
            header_map[name] = idx
    missing = [column for column in REQUIRED_HEADERS if column not in header_map]
    if missing:
        raise QuestionBankError('Missing required columns: ' + ', '.join(missing))

    def cell(row, column: str) -> Any:
        idx = header_map.get(column)
        if idx is None or idx >= len(row):
            return None
        return row[idx]

    definitions: List[QuestionDefinition] = []
    seen_codes = set()
    skipped = 0
    for row in rows[1:]:
        if row is None or not any(value not in (None, '') for value in row):
            continue
        code = str(cell(row, 'question_code') or '').strip()
        text = str(cell(row, 'question_text') or '').strip()
        dimension = _clean_dimension(cell(row, 'dimension'))
        if not code or not text or dimension is None or code in seen_codes:
            skipped += 1
            continue
        seen_codes.add(code)
        definitions.append(
            QuestionDefinition(code, dimension, text, _coerce_order(cell(row, 'display_order')))
        )

    if not definitions:
        raise QuestionBankError('The workbook does not include any valid questions.')
    stats = _upsert(definitions)
    stats.skipped = skipped
    return stats


__all__ = [
    'DEFAULT_QUESTIONS',
    'QuestionBankError',
    'QuestionDefinition',
    'QuestionImportStats',
    'import_questions_workbook',
    'install_default_questions',
]

"""Backfill SEL insights for journal entries that were never analysed.

A journal entry is stored even when the text analysis service is down, so
entries can exist without a linked :class:`~sel.models.SelInsight`.  This
module walks those entries newest first and scores them one at a time; a
failure on one entry is logged and counted without stopping the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from ..models import JournalEntry, SelInsight
from . import text_analysis
from .errors import PersistenceError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


@dataclass
class JournalAnalysisStats:
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)


def pending_journal_entries(limit: int = DEFAULT_BATCH_SIZE, offset: int = 0) -> List[JournalEntry]:
    """Return journal entries without an insight, newest first."""

    if limit < 1:
        raise ValidationError('limit must be a positive number.')
    if offset < 0:
        raise ValidationError('offset cannot be negative.')
    queryset = (
        JournalEntry.objects.filter(insight__isnull=True)
        .select_related('child')
        .order_by('-created_at', '-pk')
    )
    try:
        return list(queryset[offset:offset + limit])
    except DatabaseError as exc:
        raise PersistenceError(f'Could not load pending journal entries: {exc}') from exc


def analyze_pending_journal_entries(limit: int = DEFAULT_BATCH_SIZE, offset: int = 0) -> JournalAnalysisStats:
    """Score up to ``limit`` unanalysed journal entries and store their insights."""

    if not text_analysis.is_configured():
        raise text_analysis.TextAnalysisError('SEL_ANALYSIS_URL is not configured.')

    stats = JournalAnalysisStats()
    for entry in pending_journal_entries(limit, offset):
        text = entry.analysis_text()
        if not text.strip():
            stats.skipped += 1
            continue
        try:
            scores = text_analysis.analyze_free_text(text, entry.child_id)
        except text_analysis.TextAnalysisError as exc:
            logger.warning('SEL analysis failed for journal entry %s: %s', entry.pk, exc)
            stats.failed += 1
            stats.errors.append(f'{entry.pk}: {exc}')
            continue
        try:
            with transaction.atomic():
                SelInsight.objects.create(
                    child_id=entry.child_id,
                    journal_entry=entry,
                    source_text=text,
                    created_at=timezone.now(),
                    **scores,
                )
        except IntegrityError:
            # Another run stored an insight for this entry first.
            stats.skipped += 1
            continue
        except DatabaseError as exc:
            raise PersistenceError(f'Could not store insight for journal entry {entry.pk}: {exc}') from exc
        stats.processed += 1

    logger.info(
        'Journal analysis finished: %s processed, %s skipped, %s failed',
        stats.processed,
        stats.skipped,
        stats.failed,
    )
    return stats


__all__ = [
    'DEFAULT_BATCH_SIZE',
    'JournalAnalysisStats',
    'analyze_pending_journal_entries',
    'pending_journal_entries',
]

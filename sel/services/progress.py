"""Apply daily activity to a child's streak, XP and badges.

Every activity follows the same path: load the progress row, build a
complete plan with the pure rule modules, then commit the plan with a
conditional update on ``ChildProgress.revision`` inside one transaction
together with the activity log row.  When another writer got there
first the conditional update matches nothing; the activity is then
planned again from fresh state, which turns a racing same-day check-in
into a no-op instead of a second award.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Mapping, Optional, Set, Tuple

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from ..choices import ActivityKind, Badge
from ..models import (
    JOURNAL_SECTIONS,
    ChildProfile,
    ChildProgress,
    JournalEntry,
    ProgressEvent,
    SelInsight,
    compose_journal_text,
)
from . import text_analysis
from .badges import ProgressMetrics, describe_badges, evaluate_badges
from .errors import ConflictError, PersistenceError, ValidationError
from .xp import activity_xp, award_check_in_xp, level_for_xp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressPlan:
    """Complete new state for a progress row, computed before any write."""

    kind: str
    xp_delta: int
    streak_count: int
    xp_points: int
    badges: List[str]
    new_badges: Tuple[str, ...]
    last_check_in: Optional[datetime]
    daily_check_in_completed: bool


@dataclass(frozen=True)
class ActivityOutcome:
    """What an activity changed; ``applied`` is only true after commit."""

    applied: bool
    kind: str
    xp_delta: int
    streak_count: int
    xp_points: int
    new_badges: Tuple[str, ...] = ()
    event_id: Optional[int] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            'applied': self.applied,
            'kind': self.kind,
            'xpEarned': self.xp_delta,
            'streakCount': self.streak_count,
            'xpPoints': self.xp_points,
            'newBadges': list(self.new_badges),
        }


def _require_child(child: Optional[ChildProfile]) -> ChildProfile:
    if child is None or child.pk is None:
        raise ValidationError('A saved child profile is required.')
    return child


def load_child_progress(child: ChildProfile) -> ChildProgress:
    """Return the progress row of ``child``, creating an empty one if needed."""

    _require_child(child)
    try:
        progress, _ = ChildProgress.objects.get_or_create(child=child)
    except DatabaseError as exc:
        raise PersistenceError(f'Could not load progress for child {child.pk}: {exc}') from exc
    return progress


def _day_bounds(now: datetime) -> Tuple[datetime, datetime]:
    if timezone.is_aware(now):
        local = timezone.localtime(now)
    else:
        local = now
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def _activity_kinds_on(child: ChildProfile, now: datetime) -> Set[str]:
    start, end = _day_bounds(now)
    return set(
        ProgressEvent.objects.filter(child=child, occurred_at__gte=start, occurred_at__lt=end)
        .values_list('kind', flat=True)
        .distinct()
    )


def _latest_sel_scores(child: ChildProfile) -> Optional[Dict[str, float]]:
    insight = SelInsight.objects.filter(child=child).order_by('-created_at', '-pk').first()
    return insight.scores() if insight else None


def _ordered_badges(held: frozenset, new_badges: frozenset) -> List[str]:
    combined = held | new_badges
    known = [badge for badge in Badge.values if badge in combined]
    return known + sorted(badge for badge in combined if badge not in Badge.values)


def build_plan(
    child: ChildProfile,
    progress: ChildProgress,
    now: datetime,
    *,
    kind: str,
    xp_delta: int,
    streak_count: int,
    last_check_in: Optional[datetime],
    daily_check_in_completed: bool,
    sel_scores: Optional[Mapping[str, float]] = None,
) -> ProgressPlan:
    """Evaluate badges for the state an activity would produce."""

    xp_points = progress.xp_points + xp_delta
    kinds_today = _activity_kinds_on(child, now) | {kind}
    wrote_journal = kind == ActivityKind.JOURNAL_ENTRY or JournalEntry.objects.filter(child=child).exists()
    metrics = ProgressMetrics(
        daily_check_in=daily_check_in_completed,
        journal_entry=wrote_journal,
        all_activities_in_one_day=set(ActivityKind.values) <= kinds_today,
        streak_count=streak_count,
        xp_points=xp_points,
        sel_scores=sel_scores if sel_scores is not None else _latest_sel_scores(child),
        profile_completed=child.profile_completed,
    )
    held = progress.badge_set()
    new_badges = evaluate_badges(held, metrics)
    return ProgressPlan(
        kind=kind,
        xp_delta=xp_delta,
        streak_count=streak_count,
        xp_points=xp_points,
        badges=_ordered_badges(held, new_badges),
        new_badges=tuple(badge for badge in Badge.values if badge in new_badges),
        last_check_in=last_check_in,
        daily_check_in_completed=daily_check_in_completed,
    )


def _commit_plan(
    child: ChildProfile,
    progress: ChildProgress,
    plan: ProgressPlan,
    now: datetime,
    extra_rows: Optional[Callable[[], None]] = None,
) -> ProgressEvent:
    """Write ``plan`` if ``progress`` is still the stored revision."""

    with transaction.atomic():
        updated = ChildProgress.objects.filter(pk=progress.pk, revision=progress.revision).update(
            streak_count=plan.streak_count,
            xp_points=plan.xp_points,
            badges=plan.badges,
            last_check_in=plan.last_check_in,
            daily_check_in_completed=plan.daily_check_in_completed,
            revision=F('revision') + 1,
            updated_at=timezone.now(),
        )
        if updated != 1:
            raise ConflictError(
                f'Progress for child {child.pk} changed since revision {progress.revision}'
            )
        if extra_rows is not None:
            extra_rows()
        return ProgressEvent.objects.create(
            child=child,
            kind=plan.kind,
            xp_earned=plan.xp_delta,
            streak_count=plan.streak_count,
            badges_unlocked=list(plan.new_badges),
            occurred_at=now,
        )


def _apply_activity(
    child: ChildProfile,
    kind: str,
    planner: Callable[[ChildProgress], Optional[ProgressPlan]],
    now: datetime,
    extra_rows: Optional[Callable[[], None]] = None,
) -> ActivityOutcome:
    attempts = max(int(getattr(settings, 'SEL_PROGRESS_MAX_ATTEMPTS', 3)), 1)
    for attempt in range(1, attempts + 1):
        progress = load_child_progress(child)
        try:
            plan = planner(progress)
        except DatabaseError as exc:
            raise PersistenceError(f'Could not read activity for child {child.pk}: {exc}') from exc
        if plan is None:
            return ActivityOutcome(
                applied=False,
                kind=kind,
                xp_delta=0,
                streak_count=progress.streak_count,
                xp_points=progress.xp_points,
            )
        try:
            event = _commit_plan(child, progress, plan, now, extra_rows)
        except ConflictError as exc:
            logger.warning('Retrying %s for child %s (attempt %s): %s', kind, child.pk, attempt, exc)
            continue
        except DatabaseError as exc:
            logger.warning('Failed to store %s for child %s: %s', kind, child.pk, exc)
            raise PersistenceError(f'Could not store {kind} for child {child.pk}: {exc}') from exc

        logger.info(
            'Recorded %s for child %s: +%s XP, streak %s, new badges %s',
            kind,
            child.pk,
            plan.xp_delta,
            plan.streak_count,
            ', '.join(plan.new_badges) or 'none',
        )
        return ActivityOutcome(
            applied=True,
            kind=kind,
            xp_delta=plan.xp_delta,
            streak_count=plan.streak_count,
            xp_points=plan.xp_points,
            new_badges=plan.new_badges,
            event_id=event.pk,
        )
    raise PersistenceError(f'Could not apply {kind} for child {child.pk} after {attempts} attempts')


def record_daily_check_in(child: ChildProfile, now: Optional[datetime] = None) -> ActivityOutcome:
    """Record today's check-in; repeated calls on the same day change nothing."""

    _require_child(child)
    now = now or timezone.now()
    kind = ActivityKind.CHECK_IN.value

    def planner(progress: ChildProgress) -> Optional[ProgressPlan]:
        award = award_check_in_xp(progress.streak_count, progress.last_check_in, now)
        if award.already_recorded:
            return None
        return build_plan(
            child,
            progress,
            now,
            kind=kind,
            xp_delta=award.xp_delta,
            streak_count=award.updated_streak,
            last_check_in=now,
            daily_check_in_completed=True,
        )

    return _apply_activity(child, kind, planner, now)


def _clean_sections(sections: Optional[Mapping[str, str]]) -> Dict[str, str]:
    known = {name for name, _ in JOURNAL_SECTIONS}
    unknown = sorted(set(sections or {}) - known)
    if unknown:
        raise ValidationError(f"Unknown journal sections: {', '.join(unknown)}")
    return {name: str(value or '').strip() for name, value in (sections or {}).items()}


def record_journal_entry(
    child: ChildProfile,
    content: str,
    now: Optional[datetime] = None,
    *,
    sections: Optional[Mapping[str, str]] = None,
    analyze: bool = True,
) -> ActivityOutcome:
    """Store a journal entry and award its XP.

    ``sections`` holds the guided prompts (what went well, gratitude and so
    on); an entry needs free text or at least one section.  When the text
    analysis service is configured the combined text is scored first and the
    scores are stored as a :class:`SelInsight` linked to the entry.  An
    analysis failure is logged and the entry is still recorded, so it can be
    picked up later by ``analyze_journal_entries``.
    """

    _require_child(child)
    content = (content or '').strip()
    cleaned_sections = _clean_sections(sections)
    if not content and not any(cleaned_sections.values()):
        raise ValidationError('Journal entries cannot be empty.')
    now = now or timezone.now()
    kind = ActivityKind.JOURNAL_ENTRY.value
    text = compose_journal_text(content, cleaned_sections)

    sel_scores: Optional[Dict[str, float]] = None
    if analyze and text_analysis.is_configured():
        try:
            sel_scores = text_analysis.analyze_free_text(text, child.pk)
        except text_analysis.TextAnalysisError as exc:
            logger.warning('SEL analysis failed for child %s: %s', child.pk, exc)

    def planner(progress: ChildProgress) -> ProgressPlan:
        return build_plan(
            child,
            progress,
            now,
            kind=kind,
            xp_delta=activity_xp(kind),
            streak_count=progress.streak_count,
            last_check_in=progress.last_check_in,
            daily_check_in_completed=progress.checked_in_today(now),
            sel_scores=sel_scores,
        )

    def extra_rows() -> None:
        entry = JournalEntry.objects.create(child=child, content=content, created_at=now, **cleaned_sections)
        if sel_scores is not None:
            SelInsight.objects.create(
                child=child,
                journal_entry=entry,
                source_text=text,
                created_at=now,
                **sel_scores,
            )

    return _apply_activity(child, kind, planner, now, extra_rows)


def record_mindfulness_session(child: ChildProfile, now: Optional[datetime] = None) -> ActivityOutcome:
    """Award XP for a completed mindfulness session."""

    _require_child(child)
    now = now or timezone.now()
    kind = ActivityKind.MINDFULNESS.value

    def planner(progress: ChildProgress) -> ProgressPlan:
        return build_plan(
            child,
            progress,
            now,
            kind=kind,
            xp_delta=activity_xp(kind),
            streak_count=progress.streak_count,
            last_check_in=progress.last_check_in,
            daily_check_in_completed=progress.checked_in_today(now),
        )

    return _apply_activity(child, kind, planner, now)


def progress_summary(child: ChildProfile, now: Optional[datetime] = None) -> Dict[str, object]:
    """Dashboard view of a child's progress with derived level information."""

    now = now or timezone.now()
    progress = load_child_progress(child)
    level = level_for_xp(progress.xp_points)
    return {
        'childId': child.pk,
        'streakCount': progress.streak_count,
        'xpPoints': progress.xp_points,
        'level': level.level,
        'levelProgress': level.progress_percent,
        'nextLevelXp': level.next_threshold,
        'checkedInToday': progress.checked_in_today(now),
        'lastCheckIn': progress.last_check_in.isoformat() if progress.last_check_in else None,
        'badges': [
            {'id': badge.badge_id, 'title': badge.title, 'description': badge.description}
            for badge in describe_badges(progress.badge_set())
        ],
    }


__all__ = [
    'ActivityOutcome',
    'ProgressPlan',
    'build_plan',
    'load_child_progress',
    'progress_summary',
    'record_daily_check_in',
    'record_journal_entry',
    'record_mindfulness_session',
]

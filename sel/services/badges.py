"""Badge unlocking rules.

Badges are permanent: evaluation only ever reports badges that are not
already held.  Rules run in two fixed phases so results never depend on
declaration order:

1. leaf rules look at the progress metrics only;
2. composite rules look at the held badges plus the leaves unlocked in
   phase one, which lets a single activity cascade into a composite badge.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from ..choices import Badge, Dimension
from .errors import ValidationError

SEL_MILESTONE_SCORE = 0.7

STREAK_BADGES: Tuple[Tuple[int, str], ...] = (
    (3, Badge.THREE_DAY_STREAK.value),
    (7, Badge.WEEK_STREAK.value),
    (15, Badge.HALF_MONTH_STREAK.value),
)

XP_BADGES: Tuple[Tuple[int, str], ...] = (
    (50, Badge.XP_COLLECTOR_50.value),
    (100, Badge.LEVEL_UP.value),
)

DIMENSION_BADGES: Dict[str, str] = {
    Dimension.SELF_AWARENESS.value: Badge.SELF_AWARENESS_STAR.value,
    Dimension.SELF_MANAGEMENT.value: Badge.SELF_MANAGEMENT_MASTER.value,
    Dimension.SOCIAL_AWARENESS.value: Badge.SOCIAL_AWARENESS_HERO.value,
    Dimension.RELATIONSHIP_SKILLS.value: Badge.RELATIONSHIP_BUILDER.value,
    Dimension.RESPONSIBLE_DECISION_MAKING.value: Badge.DECISION_MAKER.value,
}

COMPOSITE_BADGES: Dict[str, FrozenSet[str]] = {
    Badge.CONSISTENCY_CHAMP.value: frozenset(badge for _, badge in STREAK_BADGES),
    Badge.SEL_GROWTH_CHAMPION.value: frozenset(DIMENSION_BADGES.values()),
}

BADGE_DETAILS: Dict[str, str] = {
    Badge.FIRST_LOGIN.value: 'Completed your first login',
    Badge.PROFILE_CREATOR.value: 'Created your profile',
    Badge.DAILY_HERO.value: 'Completed first daily check-in',
    Badge.JOURNAL_STARTER.value: 'Created your first journal entry',
    Badge.TRIO_CHAMP.value: 'Checked in, journaled and practised mindfulness in one day',
    Badge.THREE_DAY_STREAK.value: 'Completed check-ins for 3 days in a row',
    Badge.WEEK_STREAK.value: 'Completed check-ins for 7 days in a row',
    Badge.HALF_MONTH_STREAK.value: 'Completed check-ins for 15 days in a row',
    Badge.CONSISTENCY_CHAMP.value: 'Earned every streak badge',
    Badge.XP_COLLECTOR_50.value: 'Collected 50 experience points',
    Badge.LEVEL_UP.value: 'Collected 100 experience points',
    Badge.SELF_AWARENESS_STAR.value: 'Showed strong self-awareness',
    Badge.SELF_MANAGEMENT_MASTER.value: 'Showed strong self-management',
    Badge.SOCIAL_AWARENESS_HERO.value: 'Showed strong social awareness',
    Badge.RELATIONSHIP_BUILDER.value: 'Showed strong relationship skills',
    Badge.DECISION_MAKER.value: 'Showed responsible decision making',
    Badge.SEL_GROWTH_CHAMPION.value: 'Reached a milestone in every SEL area',
}


@dataclass(frozen=True)
class ProgressMetrics:
    """Snapshot of the values the badge rules look at."""

    daily_check_in: bool = False
    journal_entry: bool = False
    all_activities_in_one_day: bool = False
    streak_count: int = 0
    xp_points: int = 0
    sel_scores: Optional[Mapping[str, float]] = None
    profile_completed: bool = False


@dataclass(frozen=True)
class BadgeDescription:
    badge_id: str
    title: str
    description: str
    unlocked: bool = field(default=True)


LeafRule = Callable[[ProgressMetrics], Iterable[str]]


def _always(metrics: ProgressMetrics) -> Iterable[str]:
    return (Badge.FIRST_LOGIN.value,)


def _profile(metrics: ProgressMetrics) -> Iterable[str]:
    return (Badge.PROFILE_CREATOR.value,) if metrics.profile_completed else ()


def _activities(metrics: ProgressMetrics) -> Iterable[str]:
    unlocked: List[str] = []
    if metrics.daily_check_in:
        unlocked.append(Badge.DAILY_HERO.value)
    if metrics.journal_entry:
        unlocked.append(Badge.JOURNAL_STARTER.value)
    if metrics.all_activities_in_one_day:
        unlocked.append(Badge.TRIO_CHAMP.value)
    return unlocked


def _streaks(metrics: ProgressMetrics) -> Iterable[str]:
    return [badge for threshold, badge in STREAK_BADGES if metrics.streak_count >= threshold]


def _experience(metrics: ProgressMetrics) -> Iterable[str]:
    return [badge for threshold, badge in XP_BADGES if metrics.xp_points >= threshold]


def _sel_scores(metrics: ProgressMetrics) -> Iterable[str]:
    if not metrics.sel_scores:
        return ()
    unlocked = []
    for dimension, score in metrics.sel_scores.items():
        badge = DIMENSION_BADGES.get(str(dimension))
        if badge is None:
            raise ValidationError(f'Unknown SEL dimension: {dimension!r}')
        if score is not None and score >= SEL_MILESTONE_SCORE:
            unlocked.append(badge)
    return unlocked


LEAF_RULES: Tuple[LeafRule, ...] = (
    _always,
    _profile,
    _activities,
    _streaks,
    _experience,
    _sel_scores,
)


def evaluate_badges(existing: Iterable[str], metrics: ProgressMetrics) -> FrozenSet[str]:
    """Return the badges newly unlocked by ``metrics``.

    ``existing`` is never modified and none of its members are returned.
    """

    held = frozenset(str(badge) for badge in existing)

    leaves = set()
    for rule in LEAF_RULES:
        leaves.update(rule(metrics))
    unlocked = leaves - held

    combined = held | unlocked
    for badge, requirements in COMPOSITE_BADGES.items():
        if badge not in held and requirements <= combined:
            unlocked.add(badge)
    return frozenset(unlocked)


def describe_badges(badge_ids: Iterable[str], *, include_locked: bool = False) -> List[BadgeDescription]:
    """Return display details for ``badge_ids`` in catalogue order."""

    held = {str(badge) for badge in badge_ids}
    described = []
    for badge in Badge:
        unlocked = badge.value in held
        if not unlocked and not include_locked:
            continue
        described.append(
            BadgeDescription(
                badge_id=badge.value,
                title=badge.label,
                description=BADGE_DETAILS[badge.value],
                unlocked=unlocked,
            )
        )
    return described


__all__ = [
    'BADGE_DETAILS',
    'BadgeDescription',
    'COMPOSITE_BADGES',
    'DIMENSION_BADGES',
    'ProgressMetrics',
    'SEL_MILESTONE_SCORE',
    'describe_badges',
    'evaluate_badges',
]

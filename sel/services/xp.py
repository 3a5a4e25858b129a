"""Experience point awards and level derivation.

Check-ins earn XP at most once per calendar day and may add a streak
milestone bonus.  Journal entries and mindfulness sessions earn a fixed
amount per event.  Levels are always derived from the running XP total
and are never stored.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Sequence

from ..choices import ActivityKind
from .streaks import evaluate_streak

CHECK_IN_XP = 10
JOURNAL_ENTRY_XP = 15
MINDFULNESS_XP = 10

# Bonus XP granted when a streak reaches exactly one of these values.
STREAK_MILESTONE_BONUSES: Dict[int, int] = {
    3: 10,
    7: 15,
    15: 25,
}

LEVEL_THRESHOLDS: Sequence[int] = (0, 50, 100, 200, 350, 500, 750, 1000, 1500, 2000)

ACTIVITY_XP: Dict[str, int] = {
    ActivityKind.JOURNAL_ENTRY.value: JOURNAL_ENTRY_XP,
    ActivityKind.MINDFULNESS.value: MINDFULNESS_XP,
}


@dataclass(frozen=True)
class CheckInAward:
    xp_delta: int
    updated_streak: int
    milestone_bonus: int = 0
    already_recorded: bool = False


@dataclass(frozen=True)
class LevelProgress:
    level: int
    progress_percent: int
    current_threshold: int
    next_threshold: Optional[int]

    @property
    def is_max_level(self) -> bool:
        return self.next_threshold is None


def award_check_in_xp(streak_count: int, last_check_in: Optional[datetime], now: datetime) -> CheckInAward:
    """Compute the XP and streak outcome of a daily check-in at ``now``."""

    decision = evaluate_streak(last_check_in, now)
    if decision.should_increment:
        updated_streak = streak_count + 1
    elif decision.seed > 0:
        updated_streak = decision.seed
    else:
        updated_streak = streak_count

    if decision.same_day:
        return CheckInAward(xp_delta=0, updated_streak=updated_streak, already_recorded=True)

    bonus = 0
    if decision.should_increment:
        bonus = STREAK_MILESTONE_BONUSES.get(updated_streak, 0)
    return CheckInAward(
        xp_delta=CHECK_IN_XP + bonus,
        updated_streak=updated_streak,
        milestone_bonus=bonus,
    )


def activity_xp(kind: str) -> int:
    """Return the fixed award for a non check-in activity."""

    try:
        return ACTIVITY_XP[ActivityKind(kind).value]
    except KeyError:
        raise ValueError(f'No fixed XP award for activity {kind!r}') from None


def level_for_xp(xp_points: int) -> LevelProgress:
    """Derive the level and progress towards the next level from ``xp_points``."""

    xp = max(int(xp_points), 0)
    level = 1
    for index in range(1, len(LEVEL_THRESHOLDS)):
        threshold = LEVEL_THRESHOLDS[index]
        if xp >= threshold:
            level = index + 1
            continue
        floor_xp = LEVEL_THRESHOLDS[index - 1]
        span = threshold - floor_xp
        progress = math.floor((xp - floor_xp) / span * 100)
        return LevelProgress(
            level=level,
            progress_percent=progress,
            current_threshold=floor_xp,
            next_threshold=threshold,
        )
    return LevelProgress(
        level=level,
        progress_percent=100,
        current_threshold=LEVEL_THRESHOLDS[-1],
        next_threshold=None,
    )


__all__ = [
    'CHECK_IN_XP',
    'JOURNAL_ENTRY_XP',
    'MINDFULNESS_XP',
    'STREAK_MILESTONE_BONUSES',
    'LEVEL_THRESHOLDS',
    'CheckInAward',
    'LevelProgress',
    'activity_xp',
    'award_check_in_xp',
    'level_for_xp',
]

"""Daily check-in streak evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from django.utils import timezone


@dataclass(frozen=True)
class StreakDecision:
    """Outcome of comparing the last check-in with the current moment.

    ``seed`` is the value the streak should be set to when it (re)starts,
    or ``0`` when the existing count is kept.  ``should_increment`` asks the
    caller to add one to the stored streak.
    """

    seed: int
    should_increment: bool

    @property
    def same_day(self) -> bool:
        return self.seed == 0 and not self.should_increment


def calendar_day(value: datetime) -> date:
    """Return the calendar day of ``value`` in the project time zone."""

    if timezone.is_aware(value):
        return timezone.localtime(value).date()
    return value.date()


def is_same_calendar_day(first: Optional[datetime], second: datetime) -> bool:
    if first is None:
        return False
    return calendar_day(first) == calendar_day(second)


def evaluate_streak(last_check_in: Optional[datetime], now: datetime) -> StreakDecision:
    """Decide whether a check-in at ``now`` continues, repeats or resets a streak."""

    if last_check_in is None:
        return StreakDecision(seed=1, should_increment=False)

    today = calendar_day(now)
    previous = calendar_day(last_check_in)
    if previous == today - timedelta(days=1):
        return StreakDecision(seed=0, should_increment=True)
    if previous == today:
        return StreakDecision(seed=0, should_increment=False)
    return StreakDecision(seed=1, should_increment=False)


__all__ = ['StreakDecision', 'calendar_day', 'evaluate_streak', 'is_same_calendar_day']

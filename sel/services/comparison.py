"""Pre/post assessment comparison.

The comparison is recomputed on every request and never stored.  The
overall change is the percent change between the average PRE score and
the average POST score, not the average of per-dimension percentages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional

from ..choices import DIMENSION_ORDER, AssessmentStatus, Dimension
from .scoring import round_half_up

PRE_PENDING = 'PRE_PENDING'
POST_PENDING = 'POST_PENDING'
AVAILABLE = 'AVAILABLE'
DISABLED = 'DISABLED'


@dataclass(frozen=True)
class AssessmentSnapshot:
    """Read-only copy of a stored assessment result."""

    assessment_type: str
    status: str
    completion_date: Optional[datetime] = None
    scores: Mapping[str, int] = field(default_factory=dict)

    @property
    def is_completed(self) -> bool:
        return self.status == AssessmentStatus.COMPLETED


@dataclass(frozen=True)
class DimensionChange:
    dimension: str
    pre: int
    post: int
    change: int

    @property
    def label(self) -> str:
        return Dimension(self.dimension).label


@dataclass(frozen=True)
class ComparisonView:
    status: str
    pre: Optional[AssessmentSnapshot] = None
    post: Optional[AssessmentSnapshot] = None
    comparison: List[DimensionChange] = field(default_factory=list)
    overall_change_percent: Optional[int] = None
    average_pre: Optional[int] = None
    average_post: Optional[int] = None
    biggest_growth: Optional[DimensionChange] = None
    strongest_skill: Optional[DimensionChange] = None
    weakest_skill: Optional[DimensionChange] = None

    @property
    def average_change(self) -> Optional[int]:
        if self.average_pre is None or self.average_post is None:
            return None
        return self.average_post - self.average_pre


def overall_change_percent(pre_average: float, post_average: float) -> int:
    """Percent change between the PRE and POST averages."""

    if pre_average == 0:
        return 100 if post_average > 0 else 0
    return round_half_up((post_average - pre_average) / pre_average * 100)


def _ordered_dimensions(scores: Mapping[str, int]) -> List[str]:
    known = [dimension for dimension in DIMENSION_ORDER if dimension in scores]
    extra = [str(key) for key in scores if str(key) not in DIMENSION_ORDER]
    return known + extra


def build_dimension_changes(pre_scores: Mapping[str, int], post_scores: Mapping[str, int]) -> List[DimensionChange]:
    changes = []
    for dimension in _ordered_dimensions(pre_scores):
        pre = int(pre_scores.get(dimension) or 0)
        post = int(post_scores.get(dimension) or 0)
        changes.append(DimensionChange(dimension=dimension, pre=pre, post=post, change=post - pre))
    return changes


def compare_assessments(
    pre: Optional[AssessmentSnapshot],
    post: Optional[AssessmentSnapshot],
    *,
    enabled: bool = True,
) -> ComparisonView:
    """Classify a PRE/POST pair and compute per-dimension deltas."""

    if not enabled:
        return ComparisonView(status=DISABLED)
    if pre is None or not pre.is_completed:
        return ComparisonView(status=PRE_PENDING)
    if post is None or not post.is_completed:
        return ComparisonView(status=POST_PENDING, pre=pre)

    changes = build_dimension_changes(pre.scores or {}, post.scores or {})
    if not changes:
        return ComparisonView(
            status=AVAILABLE,
            pre=pre,
            post=post,
            overall_change_percent=0,
        )

    pre_average = sum(item.pre for item in changes) / len(changes)
    post_average = sum(item.post for item in changes) / len(changes)
    growth = max(changes, key=lambda item: item.change)
    return ComparisonView(
        status=AVAILABLE,
        pre=pre,
        post=post,
        comparison=changes,
        overall_change_percent=overall_change_percent(pre_average, post_average),
        average_pre=round_half_up(pre_average),
        average_post=round_half_up(post_average),
        biggest_growth=growth if growth.change > 0 else None,
        strongest_skill=max(changes, key=lambda item: item.post),
        weakest_skill=min(changes, key=lambda item: item.post),
    )


def comparison_payload(view: ComparisonView) -> Dict[str, object]:
    """Serialise a comparison view into a JSON friendly dictionary."""

    def snapshot(value: Optional[AssessmentSnapshot]) -> Optional[Dict[str, object]]:
        if value is None:
            return None
        return {
            'completionDate': value.completion_date.isoformat() if value.completion_date else None,
            'scores': dict(value.scores or {}),
        }

    def change(value: Optional[DimensionChange]) -> Optional[Dict[str, object]]:
        if value is None:
            return None
        return {
            'dimension': value.dimension,
            'label': value.label if value.dimension in DIMENSION_ORDER else value.dimension,
            'pre': value.pre,
            'post': value.post,
            'change': value.change,
        }

    payload: Dict[str, object] = {'status': view.status}
    if view.pre is not None:
        payload['preAssessment'] = snapshot(view.pre)
    if view.status == AVAILABLE:
        payload['postAssessment'] = snapshot(view.post)
        payload['comparison'] = [change(item) for item in view.comparison]
        payload['overallChangePercent'] = view.overall_change_percent
        payload['averagePre'] = view.average_pre
        payload['averagePost'] = view.average_post
        payload['averageChange'] = view.average_change
        payload['biggestGrowth'] = change(view.biggest_growth)
        payload['strongestSkill'] = change(view.strongest_skill)
        payload['weakestSkill'] = change(view.weakest_skill)
    return payload


__all__ = [
    'AVAILABLE',
    'DISABLED',
    'POST_PENDING',
    'PRE_PENDING',
    'AssessmentSnapshot',
    'ComparisonView',
    'DimensionChange',
    'build_dimension_changes',
    'compare_assessments',
    'comparison_payload',
    'overall_change_percent',
]

"""Data models for the Sprout SEL application.

The models here hold the child profiles owned by a parent account, the
gamified progress record of each child, the activity log fed by daily
check-ins, journal entries and mindfulness sessions, and the pre/post
assessment questionnaire with its results.  Progress rows are only
written by :mod:`sel.services.progress`, which guards every write with the
``revision`` counter so concurrent activity for one child cannot apply the
same award twice.
"""

from __future__ import annotations

from datetime import datetime

from django.contrib.auth.models import User
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from .choices import ActivityKind, AssessmentStatus, AssessmentType, Dimension
from .services.streaks import is_same_calendar_day


class ParentProfile(models.Model):
    """Additional information associated with a Django auth User."""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='parent_profile')
    full_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover
        return self.full_name or self.user.username


class ChildProfile(models.Model):
    """A child managed by a parent account.

    ``assessments_enabled`` overrides the global pre/post assessment flag
    for this child when set; ``None`` follows the global setting.
    """

    class CreationStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        COMPLETED = 'completed', 'Completed'

    parent = models.ForeignKey(ParentProfile, on_delete=models.CASCADE, related_name='children')
    nickname = models.CharField(max_length=100)
    date_of_birth = models.DateField(null=True, blank=True)
    avatar = models.CharField(max_length=100, blank=True)
    creation_status = models.CharField(
        max_length=20,
        choices=CreationStatus.choices,
        default=CreationStatus.PENDING,
    )
    assessments_enabled = models.BooleanField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']

    def __str__(self) -> str:  # pragma: no cover
        return self.nickname

    @property
    def profile_completed(self) -> bool:
        return self.creation_status == self.CreationStatus.COMPLETED


class ChildProgress(models.Model):
    """Streak, experience points and badges for one child.

    ``daily_check_in_completed`` only describes the calendar day of
    ``last_check_in``; use :meth:`checked_in_today` to read it.
    """

    child = models.OneToOneField(ChildProfile, on_delete=models.CASCADE, related_name='progress')
    streak_count = models.PositiveIntegerField(default=0)
    xp_points = models.PositiveIntegerField(default=0)
    badges = models.JSONField(default=list, blank=True)
    last_check_in = models.DateTimeField(null=True, blank=True)
    daily_check_in_completed = models.BooleanField(default=False)
    revision = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = 'child progress'

    def __str__(self) -> str:  # pragma: no cover
        return f"Progress<{self.child_id} streak={self.streak_count} xp={self.xp_points}>"

    def badge_set(self) -> frozenset:
        return frozenset(self.badges or [])

    def checked_in_today(self, now: datetime | None = None) -> bool:
        now = now or timezone.now()
        return bool(self.daily_check_in_completed) and is_same_calendar_day(self.last_check_in, now)


class ProgressEvent(models.Model):
    """Activity log entry recording what an event awarded."""

    child = models.ForeignKey(ChildProfile, on_delete=models.CASCADE, related_name='progress_events')
    kind = models.CharField(max_length=20, choices=ActivityKind.choices)
    xp_earned = models.PositiveIntegerField(default=0)
    streak_count = models.PositiveIntegerField(default=0)
    badges_unlocked = models.JSONField(default=list, blank=True)
    occurred_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-occurred_at']
        indexes = [models.Index(fields=['child', 'occurred_at'], name='sel_event_child_time_idx')]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.occurred_at:%Y-%m-%d %H:%M:%S} - {self.child_id}: {self.kind}"


JOURNAL_SECTIONS = (
    ('went_well', 'What went well'),
    ('went_badly', 'What went badly'),
    ('gratitude', 'Gratitude'),
    ('challenge', 'Challenge'),
    ('tomorrow_plan', "Tomorrow's plan"),
)


def compose_journal_text(content: str, sections) -> str:
    """Join the guided journal sections and the free text into one document.

    An entry without sections is analysed as its free text alone.
    """

    lines = [f'{label}: {sections[name]}' for name, label in JOURNAL_SECTIONS if sections.get(name)]
    if not lines:
        return content or ''
    if content:
        lines.append(f'Additional content: {content}')
    return '\n'.join(['Journal Entry:'] + lines)


class JournalEntry(models.Model):
    child = models.ForeignKey(ChildProfile, on_delete=models.CASCADE, related_name='journal_entries')
    content = models.TextField(blank=True, default='')
    went_well = models.TextField(blank=True, default='')
    went_badly = models.TextField(blank=True, default='')
    gratitude = models.TextField(blank=True, default='')
    challenge = models.TextField(blank=True, default='')
    tomorrow_plan = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'journal entries'

    def sections(self) -> dict[str, str]:
        return {name: getattr(self, name) for name, _ in JOURNAL_SECTIONS}

    def analysis_text(self) -> str:
        return compose_journal_text(self.content, self.sections())


class SelInsight(models.Model):
    """Per-dimension fractions returned by the text analysis service."""

    child = models.ForeignKey(ChildProfile, on_delete=models.CASCADE, related_name='sel_insights')
    journal_entry = models.OneToOneField(
        JournalEntry,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='insight',
    )
    self_awareness = models.FloatField()
    self_management = models.FloatField()
    social_awareness = models.FloatField()
    relationship_skills = models.FloatField()
    responsible_decision_making = models.FloatField()
    source_text = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']

    def scores(self) -> dict[str, float]:
        return {dimension: getattr(self, dimension) for dimension in Dimension.values}


class AssessmentQuestion(models.Model):
    question_code = models.CharField(max_length=50, unique=True)
    dimension = models.CharField(max_length=40, choices=Dimension.choices)
    question_text = models.TextField()
    display_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['dimension', 'display_order']

    def __str__(self) -> str:  # pragma: no cover
        return self.question_code


class AssessmentResult(models.Model):
    """The PRE or POST assessment of a child.

    At most one row exists per ``(child, assessment_type)``; resubmitting
    overwrites the row and its answers in place.
    """

    child = models.ForeignKey(ChildProfile, on_delete=models.CASCADE, related_name='assessment_results')
    assessment_type = models.CharField(max_length=4, choices=AssessmentType.choices)
    status = models.CharField(
        max_length=20,
        choices=AssessmentStatus.choices,
        default=AssessmentStatus.NOT_STARTED,
    )
    completion_date = models.DateTimeField(null=True, blank=True)
    scores_by_dimension = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['child', 'assessment_type'],
                name='unique_assessment_per_child_type',
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.child_id} {self.assessment_type} ({self.status})"

    @property
    def is_completed(self) -> bool:
        return self.status == AssessmentStatus.COMPLETED


class AssessmentAnswer(models.Model):
    result = models.ForeignKey(AssessmentResult, on_delete=models.CASCADE, related_name='answers')
    question_code = models.CharField(max_length=50)
    answer_value = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['result', 'question_code'],
                name='unique_answer_per_question',
            ),
        ]


class AdminSetting(models.Model):
    """Key/value settings managed by administrators."""

    PRE_POST_ASSESSMENT_ENABLED = 'is_pre_post_assessment_enabled'

    setting_key = models.CharField(max_length=100, unique=True)
    setting_value = models.JSONField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover
        return self.setting_key

"""Enumerations shared by the SEL models and the scoring engine.

The declaration order of :class:`Dimension` is the canonical order used
whenever per-dimension scores are reported back to callers.
"""

from __future__ import annotations

from django.db import models


class Dimension(models.TextChoices):
    SELF_AWARENESS = 'self_awareness', 'Self-Awareness'
    SELF_MANAGEMENT = 'self_management', 'Self-Management'
    SOCIAL_AWARENESS = 'social_awareness', 'Social Awareness'
    RELATIONSHIP_SKILLS = 'relationship_skills', 'Relationship Skills'
    RESPONSIBLE_DECISION_MAKING = 'responsible_decision_making', 'Responsible Decision Making'


class Badge(models.TextChoices):
    FIRST_LOGIN = 'first_login', 'First Login'
    PROFILE_CREATOR = 'profile_creator', 'Profile Creator'
    DAILY_HERO = 'daily_hero', 'Emotion Explorer'
    JOURNAL_STARTER = 'journal_starter', 'Journal Master'
    TRIO_CHAMP = 'trio_champ', 'Trio Champ'
    THREE_DAY_STREAK = 'three_day_streak', 'Three Day Streak'
    WEEK_STREAK = 'week_streak', 'Week Streak'
    HALF_MONTH_STREAK = 'half_month_streak', 'Half Month Streak'
    CONSISTENCY_CHAMP = 'consistency_champ', 'Consistency Champ'
    XP_COLLECTOR_50 = 'xp_collector_50', 'XP Collector'
    LEVEL_UP = 'level_up', 'Level Up'
    SELF_AWARENESS_STAR = 'self_awareness_star', 'Self-Awareness Star'
    SELF_MANAGEMENT_MASTER = 'self_management_master', 'Self-Management Master'
    SOCIAL_AWARENESS_HERO = 'social_awareness_hero', 'Social Awareness Hero'
    RELATIONSHIP_BUILDER = 'relationship_builder', 'Relationship Builder'
    DECISION_MAKER = 'decision_maker', 'Decision Maker'
    SEL_GROWTH_CHAMPION = 'sel_growth_champion', 'SEL Growth Champion'


class AssessmentType(models.TextChoices):
    PRE = 'PRE', 'Pre-Assessment'
    POST = 'POST', 'Post-Assessment'


class AssessmentStatus(models.TextChoices):
    NOT_STARTED = 'Not Started', 'Not Started'
    IN_PROGRESS = 'In Progress', 'In Progress'
    COMPLETED = 'Completed', 'Completed'


class ActivityKind(models.TextChoices):
    CHECK_IN = 'check_in', 'Daily Check-In'
    JOURNAL_ENTRY = 'journal_entry', 'Journal Entry'
    MINDFULNESS = 'mindfulness', 'Mindfulness Session'


DIMENSION_ORDER = tuple(Dimension.values)

"""Sprout SEL application.

This package holds the progress and assessment scoring engine behind the
child dashboards: daily check-in streaks, experience points and badges,
and the pre/post SEL competency assessments.  The rule logic lives in
pure modules under :mod:`sel.services` so it can be exercised without a
database; the ORM-backed services in the same package persist the
outcomes.
"""

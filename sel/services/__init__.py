"""Scoring engine and persistence services for the sel app.

``streaks``, ``xp``, ``badges``, ``scoring`` and ``comparison`` are pure
and never touch the database.  ``progress``, ``assessments``,
``parent_cache``, ``question_bank`` and ``text_analysis`` wrap them with
storage and network access.
"""

"""Application configuration for the sel app."""

from __future__ import annotations

from django.apps import AppConfig


class SelConfig(AppConfig):
    """AppConfig for the SEL progress and assessment application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'sel'
    verbose_name = 'SEL progress & assessments'

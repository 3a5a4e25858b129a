"""Cached parent account information.

Parent info (profile fields plus the list of children) is read on most
screens, so it is kept in Django's cache for ``SEL_PARENT_CACHE_TTL``
seconds and dropped whenever it is written.  A failed load sets a short
error lock (``SEL_PARENT_ERROR_LOCK``) so a broken database is not hit by
every request while it recovers.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError, transaction

from ..models import ParentProfile
from .errors import PersistenceError, ValidationError

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('full_name', 'phone')


def _info_key(user_id: int) -> str:
    return f'sel:parent-info:{user_id}'


def _lock_key(user_id: int) -> str:
    return f'sel:parent-info-error:{user_id}'


def _cache_ttl() -> int:
    return int(getattr(settings, 'SEL_PARENT_CACHE_TTL', 300))


def _error_lock_seconds() -> int:
    return int(getattr(settings, 'SEL_PARENT_ERROR_LOCK', 5))


def _build_payload(user) -> Dict[str, Any]:
    profile, _ = ParentProfile.objects.get_or_create(user=user)
    children = [
        {
            'id': child.pk,
            'nickname': child.nickname,
            'avatar': child.avatar,
            'dateOfBirth': child.date_of_birth.isoformat() if child.date_of_birth else None,
            'creationStatus': child.creation_status,
        }
        for child in profile.children.order_by('created_at', 'pk')
    ]
    return {
        'userId': user.pk,
        'username': user.get_username(),
        'email': user.email,
        'fullName': profile.full_name,
        'phone': profile.phone,
        'children': children,
    }


def get_parent_info(user, *, refresh: bool = False) -> Dict[str, Any]:
    """Return the cached parent info of ``user``, loading it on a miss."""

    if user is None or user.pk is None:
        raise ValidationError('An authenticated user is required.')
    if cache.get(_lock_key(user.pk)):
        raise PersistenceError('Parent info is temporarily unavailable, try again shortly.')
    if not refresh:
        cached: Optional[Dict[str, Any]] = cache.get(_info_key(user.pk))
        if cached is not None:
            return cached

    try:
        payload = _build_payload(user)
    except DatabaseError as exc:
        logger.warning('Failed to load parent info for user %s: %s', user.pk, exc)
        cache.set(_lock_key(user.pk), True, _error_lock_seconds())
        raise PersistenceError(f'Could not load parent info for user {user.pk}: {exc}') from exc

    cache.set(_info_key(user.pk), payload, _cache_ttl())
    return payload


def update_parent_info(user, **fields: Any) -> Dict[str, Any]:
    """Update editable profile fields and return the fresh payload."""

    if user is None or user.pk is None:
        raise ValidationError('An authenticated user is required.')
    unknown = sorted(set(fields) - set(EDITABLE_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown parent fields: {', '.join(unknown)}")

    try:
        with transaction.atomic():
            profile, _ = ParentProfile.objects.select_for_update().get_or_create(user=user)
            for name, value in fields.items():
                setattr(profile, name, str(value or '').strip())
            profile.save()
    except DatabaseError as exc:
        logger.warning('Failed to update parent info for user %s: %s', user.pk, exc)
        raise PersistenceError(f'Could not update parent info for user {user.pk}: {exc}') from exc

    clear_parent_cache(user.pk)
    return get_parent_info(user)


def clear_parent_cache(user_id: int) -> None:
    """Forget the cached payload and any error lock for ``user_id``."""

    cache.delete_many([_info_key(user_id), _lock_key(user_id)])


__all__ = ['clear_parent_cache', 'get_parent_info', 'update_parent_info']

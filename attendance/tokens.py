from __future__ import annotations

import logging
import secrets
from datetime import date, datetime, time, timedelta
from typing import Optional

from django.utils import timezone

from .errors import SessionMismatch, TokenExpired, TokenInvalidated, TokenNotFound

logger = logging.getLogger(__name__)

ISSUED = "issued"
ACTIVE = "active"
CONSUMED = "consumed"
EXPIRED = "expired"
INVALIDATED = "invalidated"


def new_token_value(kind: str = "qr") -> str:
    return f"{kind}-{secrets.token_urlsafe(18)}"


def compute_expiry(
    attendance_date: date,
    start_time: Optional[time],
    grace_minutes: int,
    now: datetime,
    buffer_minutes: int = 30,
    fallback_minutes: int = 120,
) -> datetime:
    """
    Tokens stay open until the end of the grace period plus a buffer. When the
    session has no start time, or that moment has already passed, the window
    runs ``fallback_minutes`` from ``now``.
    """
    if start_time is not None:
        start = timezone.make_aware(datetime.combine(attendance_date, start_time))
        expires_at = start + timedelta(minutes=grace_minutes + buffer_minutes)
        if expires_at > now:
            return expires_at
    return now + timedelta(minutes=fallback_minutes)


def token_state(token, now: datetime) -> str:
    if token.pk is None:
        return ISSUED
    if now >= token.expires_at:
        return EXPIRED
    if not token.is_valid:
        return INVALIDATED
    if token.used_count > 0:
        return CONSUMED
    return ACTIVE


def check_token(token, session_id=None, attendance_date=None, now=None):
    """
    Validate a check-in token without touching it.

    Raises ``TokenNotFound``, ``TokenExpired``, ``TokenInvalidated`` or
    ``SessionMismatch``. Expiry wins over an explicit close so a stale code
    always reads as expired. A consumed token is still accepted here;
    duplicate attendance is stopped by the record's unique constraint.
    """
    if token is None:
        raise TokenNotFound()
    now = now or timezone.now()
    if now >= token.expires_at:
        logger.info("Rejected expired token %s (expired %s)", token.pk, token.expires_at)
        raise TokenExpired()
    if not token.is_valid:
        logger.info("Rejected closed token %s", token.pk)
        raise TokenInvalidated()
    if session_id is not None and int(session_id) != token.session_id:
        raise SessionMismatch()
    if attendance_date is not None and attendance_date != token.attendance_date:
        raise SessionMismatch()
    return token

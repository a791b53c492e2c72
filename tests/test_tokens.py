from datetime import date, time, timedelta
from types import SimpleNamespace

import pytest

from attendance import services
from attendance.errors import SessionMismatch, TokenExpired, TokenInvalidated, TokenNotFound
from attendance.models import CheckInToken
from attendance.tokens import (
    ACTIVE,
    CONSUMED,
    EXPIRED,
    INVALIDATED,
    ISSUED,
    check_token,
    compute_expiry,
    token_state,
)

from .conftest import MONDAY, at

NOW = at(MONDAY, 9, 5)


def make_token(**overrides):
    values = dict(
        pk=1,
        session_id=7,
        attendance_date=MONDAY,
        expires_at=at(MONDAY, 9, 45),
        is_valid=True,
        used_count=0,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_missing_token():
    with pytest.raises(TokenNotFound):
        check_token(None, now=NOW)


@pytest.mark.parametrize("is_valid", [True, False])
def test_expired_wins_regardless_of_validity_flag(is_valid):
    token = make_token(expires_at=at(MONDAY, 9, 0), is_valid=is_valid)
    with pytest.raises(TokenExpired):
        check_token(token, 7, MONDAY, now=NOW)
    assert token_state(token, NOW) == EXPIRED


def test_closed_token_is_invalidated():
    token = make_token(is_valid=False)
    with pytest.raises(TokenInvalidated):
        check_token(token, 7, MONDAY, now=NOW)
    assert token_state(token, NOW) == INVALIDATED


def test_session_and_date_must_match():
    token = make_token()
    with pytest.raises(SessionMismatch):
        check_token(token, 8, MONDAY, now=NOW)
    with pytest.raises(SessionMismatch):
        check_token(token, 7, MONDAY + timedelta(days=2), now=NOW)
    assert check_token(token, "7", MONDAY, now=NOW) is token
    assert check_token(token, now=NOW) is token


def test_states():
    assert token_state(make_token(pk=None), NOW) == ISSUED
    assert token_state(make_token(), NOW) == ACTIVE
    assert token_state(make_token(used_count=3), NOW) == CONSUMED
    assert token_state(make_token(), at(MONDAY, 9, 45)) == EXPIRED


def test_expiry_is_grace_plus_buffer_after_start():
    expires = compute_expiry(MONDAY, time(9, 0), 15, at(MONDAY, 8, 30))
    assert expires == at(MONDAY, 9, 45)


def test_expiry_falls_back_when_window_already_passed():
    now = at(MONDAY, 13, 0)
    assert compute_expiry(MONDAY, time(9, 0), 15, now) == now + timedelta(minutes=120)
    assert compute_expiry(MONDAY, None, 15, now, fallback_minutes=30) == now + timedelta(minutes=30)


def test_issue_and_validate_without_mutation(session):
    token = services.issue_token(session, MONDAY, now=at(MONDAY, 8, 50))
    assert token.kind == CheckInToken.KIND_QR
    assert token.token.startswith("qr-")
    assert token.expires_at == at(MONDAY, 9, 45)

    for _ in range(2):
        found = services.validate_token(token.token, session.pk, MONDAY, now=at(MONDAY, 9, 0))
        assert found.pk == token.pk
    token.refresh_from_db()
    assert token.used_count == 0
    assert token.last_used_at is None
    assert token_state(token, at(MONDAY, 9, 0)) == ACTIVE


def test_photo_tokens_use_their_own_prefix(session):
    token = services.issue_token(session, MONDAY, kind=CheckInToken.KIND_PHOTO, now=at(MONDAY, 8, 50))
    assert token.token.startswith("photo-")


def test_unknown_token_value(db):
    with pytest.raises(TokenNotFound):
        services.validate_token("qr-does-not-exist")
    with pytest.raises(TokenNotFound):
        services.validate_token("")


def test_close_token(session):
    token = services.issue_token(session, MONDAY, now=at(MONDAY, 8, 50))
    services.close_token(token)
    with pytest.raises(TokenInvalidated):
        services.validate_token(token.token, now=at(MONDAY, 9, 0))


def test_purge_expired_tokens(session, settings):
    settings.ATTENDANCE_TOKEN_RETENTION_DAYS = 7
    old = services.issue_token(session, MONDAY, now=at(MONDAY, 8, 50))
    fresh = services.issue_token(session, date(2025, 1, 20), now=at(date(2025, 1, 20), 8, 50))
    deleted = services.purge_expired_tokens(now=at(date(2025, 1, 20), 12))
    assert deleted == 1
    assert not CheckInToken.objects.filter(pk=old.pk).exists()
    assert CheckInToken.objects.filter(pk=fresh.pk).exists()

import re
from datetime import datetime, timedelta

from eventix import tokens


def test_secret_is_64_hex_chars():
    secret, _ = tokens.issue(timedelta(days=7))
    assert re.fullmatch(r"[0-9a-f]{64}", secret)


def test_secrets_are_unique():
    secrets = {tokens.issue(timedelta(days=7))[0] for _ in range(200)}
    assert len(secrets) == 200


def test_expiry_is_issue_time_plus_ttl():
    now = datetime(2026, 1, 1, 12, 0, 0)
    _, expires_at = tokens.issue(timedelta(days=7), now=now)
    assert expires_at == datetime(2026, 1, 8, 12, 0, 0)


def test_is_expired_boundary():
    expires_at = datetime(2026, 1, 8, 12, 0, 0)
    assert not tokens.is_expired(expires_at, now=expires_at)
    assert not tokens.is_expired(expires_at, now=expires_at - timedelta(seconds=1))
    assert tokens.is_expired(expires_at, now=expires_at + timedelta(seconds=1))


def test_otp_is_six_digits():
    for _ in range(50):
        code, _ = tokens.issue_otp(timedelta(minutes=10))
        assert re.fullmatch(r"[1-9][0-9]{5}", code)


def test_utcnow_is_naive():
    assert tokens.utcnow().tzinfo is None

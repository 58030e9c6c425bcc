# eventix/tokens.py
"""Confirmation secrets and one-time codes.

Nothing here touches the database; callers persist what they are given.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Tuple

TOKEN_BYTES = 32
OTP_DIGITS = 6


def utcnow() -> datetime:
    # naive UTC, matching how DateTime columns round-trip through SQLite
    return datetime.now(timezone.utc).replace(tzinfo=None)


def issue(ttl: timedelta, now: datetime | None = None) -> Tuple[str, datetime]:
    """Return ``(secret, expires_at)`` for a new single-use token.

    The secret is 32 bytes from the OS CSPRNG, hex-encoded (64 characters).
    """
    issued_at = now or utcnow()
    return secrets.token_hex(TOKEN_BYTES), issued_at + ttl


def issue_otp(ttl: timedelta, now: datetime | None = None) -> Tuple[str, datetime]:
    issued_at = now or utcnow()
    code = str(10 ** (OTP_DIGITS - 1) + secrets.randbelow(9 * 10 ** (OTP_DIGITS - 1)))
    return code, issued_at + ttl


def is_expired(expires_at: datetime, now: datetime | None = None) -> bool:
    return (now or utcnow()) > expires_at

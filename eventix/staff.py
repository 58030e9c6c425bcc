# eventix/staff.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from . import config, tokens
from .auth import Identity, check_email_domain
from .errors import AuthenticationError, InvalidInputError, InvalidTokenError, NotFoundError, TokenExpiredError
from .models import ROLE_STAFF, Staff, StaffOtp
from .notifier import Notifier, render
from .schemas import StaffUpdate

logger = logging.getLogger(__name__)


def identity_of(member: Staff) -> Identity:
    return Identity(id=member.id, email=member.email, name=member.name, role=ROLE_STAFF)


def send_otp(
    db: Session,
    notifier: Notifier,
    email: str,
    name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> StaffOtp:
    """Store a fresh login code and email it.

    Unlike team invitations, a failed email fails the request: the code is
    useless if it never arrives.
    """
    email = email.strip().lower()
    if not email:
        raise InvalidInputError("Email is required")
    check_email_domain(email)

    code, expires_at = tokens.issue_otp(timedelta(minutes=config.OTP_TTL_MINUTES), now=now)
    record = StaffOtp(email=email, name=(name or "").strip(), otp=code, expires_at=expires_at)
    db.add(record)
    db.commit()
    db.refresh(record)

    notifier.send(
        to=email,
        subject="Staff Login OTP - Eventix",
        html=render("staff_otp.html", otp=code, ttl_minutes=config.OTP_TTL_MINUTES),
    )
    return record


def verify_otp(db: Session, email: str, otp: str, now: Optional[datetime] = None) -> Staff:
    email = email.strip().lower()
    if not email or not otp:
        raise InvalidInputError("Email and OTP are required")

    record = (
        db.query(StaffOtp)
        .filter(StaffOtp.email == email, StaffOtp.otp == otp.strip())
        .order_by(StaffOtp.created_at.desc(), StaffOtp.id.desc())
        .first()
    )
    if record is None:
        raise InvalidTokenError("Invalid OTP")
    if tokens.is_expired(record.expires_at, now):
        raise TokenExpiredError("OTP expired")

    try:
        member = db.query(Staff).filter(Staff.email == email).first()
        if member is None:
            member = Staff(
                name=record.name or "Staff Member",
                email=email,
                department="General",
                designation="Staff",
            )
            db.add(member)
        elif not member.is_active:
            raise AuthenticationError("Staff account is inactive")

        db.query(StaffOtp).filter(StaffOtp.email == email).delete(synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(member)
    logger.info("Staff %s logged in", member.id)
    return member


def active_staff(db: Session) -> List[Staff]:
    return db.query(Staff).filter(Staff.is_active.is_(True)).order_by(Staff.name).all()


def update_profile(db: Session, staff_id: int, patch: StaffUpdate) -> Staff:
    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise InvalidInputError("No fields to update")

    member = db.get(Staff, staff_id)
    if member is None:
        raise NotFoundError("Staff member not found")
    for key, value in changes.items():
        setattr(member, key, value)
    db.commit()
    db.refresh(member)
    return member

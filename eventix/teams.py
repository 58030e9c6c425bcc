# eventix/teams.py
"""Team registration with per-member, single-use confirmation links.

A registration, its members and their tokens are committed together before
any email goes out. Email failures after that point are reported back to the
caller but never undo the registration.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from . import config, tokens
from .auth import Identity
from .errors import InvalidInputError, InvalidTokenError, NotFoundError, NotificationError, TokenExpiredError
from .models import (
    MEMBER_CONFIRMED,
    TEAM_ACTIVE,
    TEAM_CANCELLED,
    ConfirmationToken,
    Event,
    TeamMember,
    TeamRegistration,
)
from .notifier import Notifier, render

logger = logging.getLogger(__name__)


@dataclass
class MemberInvite:
    email: str
    name: str = ""


@dataclass
class RegistrationResult:
    registration: TeamRegistration
    failed_notifications: List[str] = field(default_factory=list)


def confirmation_link(secret: str, base_url: Optional[str] = None) -> str:
    return f"{(base_url or config.FRONTEND_URL).rstrip('/')}/team/confirm/{secret}"


def create_registration(
    db: Session,
    notifier: Notifier,
    event_id: int,
    leader: Identity,
    team_size: int,
    members: Sequence[MemberInvite],
    ttl: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> RegistrationResult:
    if not event_id or not team_size or team_size < 1 or not members:
        raise InvalidInputError("All required fields must be provided")
    for member in members:
        if not member.email or "@" not in member.email:
            raise InvalidInputError(f"Invalid member email: {member.email!r}")

    event = db.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event not found")

    ttl = ttl or timedelta(days=config.TEAM_TOKEN_TTL_DAYS)
    invites = []
    try:
        registration = TeamRegistration(
            event_id=event.id,
            event_title=event.title,
            leader_id=leader.id,
            leader_email=leader.email,
            leader_name=leader.name,
            team_size=team_size,
            status=TEAM_ACTIVE,
        )
        db.add(registration)

        for invite in members:
            secret, expires_at = tokens.issue(ttl, now=now)
            member = TeamMember(email=invite.email.strip(), name=(invite.name or "").strip())
            member.token = ConfirmationToken(token=secret, expires_at=expires_at)
            registration.members.append(member)
            invites.append((member.email, secret))

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(registration)

    failed = []
    for email, secret in invites:
        html = render(
            "team_confirmation.html",
            event_title=event.title,
            leader_name=leader.name,
            confirmation_link=confirmation_link(secret),
            ttl_days=ttl.days,
        )
        try:
            notifier.send(
                to=email,
                subject=f"Team Registration Confirmation - {event.title}",
                html=html,
            )
        except NotificationError as e:
            logger.warning("Team %s: confirmation email to %s failed: %s", registration.id, email, e)
            failed.append(email)

    return RegistrationResult(registration=registration, failed_notifications=failed)


def confirm(db: Session, secret: str, now: Optional[datetime] = None) -> TeamMember:
    """Consume a confirmation token and mark its member confirmed.

    Both writes happen in one transaction, and the token write only succeeds
    while ``used_at`` is still NULL, so a token is consumed at most once.
    """
    now = now or tokens.utcnow()
    record = (
        db.query(ConfirmationToken)
        .filter(ConfirmationToken.token == secret, ConfirmationToken.used_at.is_(None))
        .first()
    )
    if record is None:
        raise InvalidTokenError()
    if tokens.is_expired(record.expires_at, now):
        raise TokenExpiredError()

    try:
        consumed = db.execute(
            update(ConfirmationToken)
            .where(ConfirmationToken.id == record.id, ConfirmationToken.used_at.is_(None))
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        if consumed.rowcount != 1:
            raise InvalidTokenError()

        db.execute(
            update(TeamMember)
            .where(TeamMember.id == record.team_member_id)
            .values(status=MEMBER_CONFIRMED, confirmed_at=now)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    return db.get(TeamMember, record.team_member_id, populate_existing=True)


def get_registration(db: Session, registration_id: int) -> TeamRegistration:
    registration = (
        db.query(TeamRegistration)
        .options(selectinload(TeamRegistration.members))
        .filter(TeamRegistration.id == registration_id)
        .first()
    )
    if registration is None:
        raise NotFoundError("Team registration not found")
    return registration


def registrations_for_leader(db: Session, leader_id: int) -> List[TeamRegistration]:
    return (
        db.query(TeamRegistration)
        .filter(TeamRegistration.leader_id == leader_id)
        .order_by(TeamRegistration.created_at.desc(), TeamRegistration.id.desc())
        .all()
    )


def cancel_registration(db: Session, registration_id: int, actor: Identity) -> TeamRegistration:
    # Issued tokens stay confirmable after cancellation.
    registration = (
        db.query(TeamRegistration)
        .filter(TeamRegistration.id == registration_id, TeamRegistration.leader_id == actor.id)
        .first()
    )
    if registration is None:
        raise NotFoundError("Team registration not found or unauthorized")

    registration.status = TEAM_CANCELLED
    db.commit()
    db.refresh(registration)
    return registration

# eventix/clubs.py
from __future__ import annotations

from typing import List

from sqlalchemy.orm import Session

from .auth import hash_password
from .errors import ConflictError, InvalidInputError, NotFoundError
from .models import ROLE_CLUB, Club, ClubRequest, User
from .schemas import ClubRequestCreate

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"


def submit_request(db: Session, data: ClubRequestCreate) -> ClubRequest:
    email = data.email.lower()
    if db.query(ClubRequest.id).filter(ClubRequest.email == email).first():
        raise ConflictError("Club approval request already exists")

    request = ClubRequest(
        club_name=data.club_name,
        email=email,
        phone=data.phone,
        description=data.description,
        password=hash_password(data.password),
        status=PENDING,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    return request


def pending_requests(db: Session) -> List[ClubRequest]:
    return (
        db.query(ClubRequest)
        .filter(ClubRequest.status == PENDING)
        .order_by(ClubRequest.created_at)
        .all()
    )


def _pending(db: Session, request_id: int) -> ClubRequest:
    request = db.get(ClubRequest, request_id)
    if request is None:
        raise NotFoundError("Pending club not found")
    if request.status != PENDING:
        raise InvalidInputError(f"Club request already {request.status}")
    return request


def approve(db: Session, request_id: int) -> Club:
    """Turn a pending request into a CLUB login and an approved club."""
    request = _pending(db, request_id)
    if db.query(User.id).filter(User.email == request.email).first():
        raise ConflictError("User with this email already exists")

    try:
        user = User(
            name=request.club_name,
            email=request.email,
            password=request.password,
            user_type=ROLE_CLUB,
        )
        db.add(user)
        db.flush()

        club = Club(
            club_name=request.club_name,
            email=request.email,
            phone=request.phone,
            description=request.description,
            is_approved=True,
            user_id=user.id,
        )
        db.add(club)
        request.status = APPROVED
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(club)
    return club


def reject(db: Session, request_id: int) -> ClubRequest:
    request = _pending(db, request_id)
    request.status = REJECTED
    db.commit()
    db.refresh(request)
    return request


def approved_clubs(db: Session) -> List[Club]:
    return (
        db.query(Club)
        .filter(Club.is_approved.is_(True))
        .order_by(Club.created_at.desc(), Club.id.desc())
        .all()
    )

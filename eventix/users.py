# eventix/users.py
from __future__ import annotations

import logging
from typing import AbstractSet, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .auth import Identity, check_email_domain, hash_password, verify_password
from .errors import AuthenticationError, ConflictError, InvalidInputError, NotFoundError
from .models import ROLE_ADMIN, ROLE_USER, User

logger = logging.getLogger(__name__)


def identity_of(user: User) -> Identity:
    return Identity(id=user.id, email=user.email, name=user.name, role=user.user_type)


def register(
    db: Session,
    name: str,
    email: str,
    password: str,
    admin_emails: AbstractSet[str] = frozenset(),
) -> User:
    name, email = name.strip(), email.strip().lower()
    if not name or not email or not password.strip():
        raise InvalidInputError("Name, email, and password cannot be empty")
    check_email_domain(email)

    if db.query(User.id).filter(User.email == email).first():
        raise ConflictError("User with this email already exists")

    user = User(
        name=name,
        email=email,
        password=hash_password(password),
        user_type=ROLE_ADMIN if email in admin_emails else ROLE_USER,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this email already exists")
    db.refresh(user)
    logger.info("Registered user %s as %s", user.id, user.user_type)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if user is None:
        raise NotFoundError("User does not exist")
    if not verify_password(password, user.password):
        raise AuthenticationError("Invalid credentials")
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("Invalid session")
    return user


def change_password(db: Session, user_id: int, old_password: str, new_password: str) -> None:
    user = get_user(db, user_id)
    if not verify_password(old_password, user.password):
        raise InvalidInputError("Invalid old password")
    user.password = hash_password(new_password)
    db.commit()


def update_account(db: Session, user_id: int, name: str) -> User:
    name = name.strip()
    if not name:
        raise InvalidInputError("Name is required")
    user = get_user(db, user_id)
    user.name = name
    db.commit()
    db.refresh(user)
    return user


def all_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

# eventix/profiles.py
from __future__ import annotations

from typing import List

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import ConflictError, InvalidInputError, NotFoundError
from .models import Profile
from .schemas import ProfileCreate, ProfileUpdate


def create_profile(db: Session, user_id: int, data: ProfileCreate) -> Profile:
    exists = (
        db.query(Profile.id)
        .filter(or_(Profile.user_id == user_id, Profile.username == data.username))
        .first()
    )
    if exists:
        raise ConflictError("Profile already exists for this user or username is taken")

    profile = Profile(user_id=user_id, events_added=[], **data.model_dump())
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Profile already exists for this user or username is taken")
    db.refresh(profile)
    return profile


def get_own(db: Session, user_id: int) -> Profile:
    profile = db.query(Profile).filter(Profile.user_id == user_id).first()
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


def get_by_username(db: Session, username: str) -> Profile:
    profile = db.query(Profile).filter(Profile.username == username).first()
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


def update_profile(db: Session, user_id: int, patch: ProfileUpdate) -> Profile:
    profile = get_own(db, user_id)
    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise InvalidInputError("No fields to update")

    for key, value in changes.items():
        setattr(profile, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Username is taken")
    db.refresh(profile)
    return profile


def delete_profile(db: Session, user_id: int) -> None:
    profile = get_own(db, user_id)
    db.delete(profile)
    db.commit()


def all_profiles(db: Session) -> List[Profile]:
    return db.query(Profile).order_by(Profile.created_at.desc(), Profile.id.desc()).all()

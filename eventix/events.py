# eventix/events.py
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .auth import Identity
from .errors import ConflictError, InvalidInputError, NotFoundError, SlotFullError
from .models import Event, EventRegistration
from .schemas import EventCreate, EventUpdate


def create_event(db: Session, data: EventCreate, creator: Identity) -> Event:
    exists = (
        db.query(Event.id)
        .filter(or_(Event.title == data.title, Event.registration_link == data.registration_link))
        .first()
    )
    if exists:
        raise ConflictError("Event with this title or registration link already exists")
    if data.end_time <= data.start_time:
        raise InvalidInputError("End time must be after start time")

    event = Event(**data.model_dump(), created_by=creator.email, registered_count=0)
    db.add(event)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Event with this title or registration link already exists")
    db.refresh(event)
    return event


def get_event(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event not found")
    return event


def all_events(db: Session) -> List[Event]:
    return db.query(Event).order_by(Event.created_at.desc(), Event.id.desc()).all()


def search_events(
    db: Session,
    query: Optional[str] = None,
    category: Optional[str] = None,
    mode: Optional[str] = None,
) -> List[Event]:
    q = db.query(Event)
    if query:
        pattern = f"%{query}%"
        q = q.filter(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))
    if category:
        q = q.filter(Event.category == category)
    if mode:
        q = q.filter(Event.mode == mode)
    return q.order_by(Event.created_at.desc(), Event.id.desc()).all()


def update_event(db: Session, event_id: int, patch: EventUpdate) -> Event:
    event = get_event(db, event_id)
    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise InvalidInputError("No fields to update")

    if "max_participants" in changes and changes["max_participants"] < event.registered_count:
        raise InvalidInputError("max_participants cannot be below the current registrations")
    if changes.get("end_time", event.end_time) <= changes.get("start_time", event.start_time):
        raise InvalidInputError("End time must be after start time")

    for key, value in changes.items():
        setattr(event, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Event with this title or registration link already exists")
    db.refresh(event)
    return event


def delete_event(db: Session, event_id: int) -> None:
    event = get_event(db, event_id)
    db.delete(event)
    db.commit()


# =========================
# Registration
# =========================

def register_for_event(db: Session, event_id: int, user_id: int) -> Event:
    """Take a seat on the event. Seats are counted like slot capacity."""
    if not event_id:
        raise InvalidInputError("Event ID is required")
    event = get_event(db, event_id)

    already = (
        db.query(EventRegistration.id)
        .filter(EventRegistration.event_id == event.id, EventRegistration.user_id == user_id)
        .first()
    )
    if already:
        raise ConflictError("User already registered for this event")

    try:
        seat = db.execute(
            update(Event)
            .where(Event.id == event.id, Event.registered_count < Event.max_participants)
            .values(registered_count=Event.registered_count + 1)
            .execution_options(synchronize_session=False)
        )
        if seat.rowcount != 1:
            raise SlotFullError("Event is full")
        db.add(EventRegistration(event_id=event.id, user_id=user_id))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User already registered for this event")
    except Exception:
        db.rollback()
        raise

    db.refresh(event)
    return event


def unregister_from_event(db: Session, event_id: int, user_id: int) -> None:
    event = get_event(db, event_id)
    try:
        removed = (
            db.query(EventRegistration)
            .filter(EventRegistration.event_id == event.id, EventRegistration.user_id == user_id)
            .delete(synchronize_session=False)
        )
        if not removed:
            raise InvalidInputError("User not registered for this event")
        db.execute(
            update(Event)
            .where(Event.id == event.id, Event.registered_count > 0)
            .values(registered_count=Event.registered_count - 1)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise


def registered_events(db: Session, user_id: int) -> List[Event]:
    return (
        db.query(Event)
        .join(EventRegistration, EventRegistration.event_id == Event.id)
        .filter(EventRegistration.user_id == user_id)
        .order_by(Event.date, Event.start_time)
        .all()
    )

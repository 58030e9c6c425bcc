# eventix/appointments.py
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from . import slots
from .auth import Identity
from .errors import InvalidInputError, NotFoundError
from .models import (
    APPOINTMENT_BOOKED,
    APPOINTMENT_CANCELLED,
    ROLE_ADMIN,
    ROLE_STAFF,
    Appointment,
    TimeSlot,
)

logger = logging.getLogger(__name__)


def create(
    db: Session,
    slot_id: int,
    requester: Identity,
    user_name: str,
    user_email: str,
    purpose: str,
    user_phone: str = "",
) -> Appointment:
    """Reserve one unit on the slot and record the booking, atomically."""
    if not user_name or not user_email or not purpose:
        raise InvalidInputError("All required fields must be provided")

    try:
        slot = slots.try_reserve(db, slot_id)
        appointment = Appointment(
            time_slot_id=slot.id,
            staff_id=slot.staff_id,
            user_id=requester.id,
            user_name=user_name,
            user_email=user_email,
            user_phone=user_phone or "",
            purpose=purpose,
            status=APPOINTMENT_BOOKED,
        )
        db.add(appointment)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(appointment)
    logger.info("Appointment %s booked on slot %s", appointment.id, slot_id)
    return appointment


def _find(db: Session, appointment_id: int, actor: Optional[Identity]) -> Appointment:
    query = db.query(Appointment).filter(Appointment.id == appointment_id)
    if actor is not None and actor.role == ROLE_STAFF:
        query = query.filter(Appointment.staff_id == actor.id)
    elif actor is not None and actor.role != ROLE_ADMIN:
        query = query.filter(Appointment.user_id == actor.id)
    appointment = query.first()
    if appointment is None:
        raise NotFoundError("Appointment not found")
    return appointment


def cancel(
    db: Session,
    appointment_id: int,
    actor: Optional[Identity] = None,
    notes: Optional[str] = None,
) -> Appointment:
    """Cancel a booking and hand its capacity unit back to the slot.

    Cancelling an already cancelled appointment changes nothing. ``notes``,
    when given, is written in the same transaction as the status.
    """
    appointment = _find(db, appointment_id, actor)
    values = {"status": APPOINTMENT_CANCELLED}
    if notes is not None:
        values["notes"] = notes
    try:
        # the status guard makes the release happen at most once per appointment
        result = db.execute(
            update(Appointment)
            .where(
                Appointment.id == appointment.id,
                Appointment.status != APPOINTMENT_CANCELLED,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            slots.release(db, appointment.time_slot_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(appointment)
    return appointment


def set_status(
    db: Session,
    appointment_id: int,
    new_status: str,
    notes: str = "",
    actor: Optional[Identity] = None,
) -> Appointment:
    """Staff status update. ``CANCELLED`` goes through :func:`cancel`."""
    new_status = (new_status or "").strip().upper()
    if not new_status:
        raise InvalidInputError("Status is required")

    if new_status == APPOINTMENT_CANCELLED:
        return cancel(db, appointment_id, actor, notes=notes or "")

    appointment = _find(db, appointment_id, actor)
    if appointment.status == APPOINTMENT_CANCELLED:
        raise InvalidInputError("Cancelled appointments cannot change status")
    appointment.status = new_status
    appointment.notes = notes or ""
    db.commit()
    db.refresh(appointment)
    return appointment


def for_user(db: Session, user_id: int) -> List[Appointment]:
    return (
        db.query(Appointment)
        .join(TimeSlot, Appointment.time_slot_id == TimeSlot.id)
        .options(joinedload(Appointment.time_slot), joinedload(Appointment.staff))
        .filter(Appointment.user_id == user_id)
        .order_by(TimeSlot.date.desc(), TimeSlot.start_time.desc())
        .all()
    )


def for_staff(db: Session, staff_id: int) -> List[Appointment]:
    return (
        db.query(Appointment)
        .join(TimeSlot, Appointment.time_slot_id == TimeSlot.id)
        .options(joinedload(Appointment.time_slot))
        .filter(Appointment.staff_id == staff_id)
        .order_by(TimeSlot.date.desc(), TimeSlot.start_time.desc())
        .all()
    )

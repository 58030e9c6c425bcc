# eventix/slots.py
"""Slot ledger.

``TimeSlot.current_bookings`` and ``TimeSlot.status`` are only ever written
here, each time by a single conditional UPDATE, so concurrent reservations on
the same slot cannot push it past ``max_bookings``. Functions flush but do not
commit: the caller owns the transaction.
"""
from __future__ import annotations

from datetime import date, time
from typing import List, Optional

from sqlalchemy import and_, case, update
from sqlalchemy.orm import Session

from .errors import InvalidInputError, NotFoundError, SlotFullError, SlotNotAvailableError
from .models import SLOT_AVAILABLE, SLOT_BOOKED, TimeSlot


def slot_status(current_bookings: int, max_bookings: int) -> str:
    return SLOT_BOOKED if current_bookings >= max_bookings else SLOT_AVAILABLE


def try_reserve(db: Session, slot_id: int) -> TimeSlot:
    """Take one capacity unit on the slot or raise.

    Raises ``NotFoundError`` for an unknown slot, ``SlotFullError`` when no
    capacity is left and ``SlotNotAvailableError`` when the slot is closed for
    any other reason.
    """
    result = db.execute(
        update(TimeSlot)
        .where(
            and_(
                TimeSlot.id == slot_id,
                TimeSlot.status == SLOT_AVAILABLE,
                TimeSlot.current_bookings < TimeSlot.max_bookings,
            )
        )
        .values(
            current_bookings=TimeSlot.current_bookings + 1,
            status=case(
                (TimeSlot.current_bookings + 1 >= TimeSlot.max_bookings, SLOT_BOOKED),
                else_=SLOT_AVAILABLE,
            ),
        )
        .execution_options(synchronize_session=False)
    )

    slot = db.get(TimeSlot, slot_id, populate_existing=True)
    if result.rowcount == 1:
        return slot

    if slot is None:
        raise NotFoundError("Time slot not found")
    if slot.current_bookings >= slot.max_bookings:
        raise SlotFullError()
    raise SlotNotAvailableError()


def release(db: Session, slot_id: int) -> None:
    """Give one capacity unit back and reopen the slot."""
    db.execute(
        update(TimeSlot)
        .where(TimeSlot.id == slot_id)
        .values(
            current_bookings=case(
                (TimeSlot.current_bookings > 0, TimeSlot.current_bookings - 1),
                else_=0,
            ),
            status=SLOT_AVAILABLE,
        )
        .execution_options(synchronize_session=False)
    )


def create_slot(
    db: Session,
    staff_id: int,
    slot_date: date,
    start_time: time,
    end_time: time,
    location: str = "",
    notes: str = "",
    max_bookings: int = 1,
) -> TimeSlot:
    if end_time <= start_time:
        raise InvalidInputError("End time must be after start time")
    if max_bookings < 1:
        raise InvalidInputError("maxBookings must be at least 1")

    slot = TimeSlot(
        staff_id=staff_id,
        date=slot_date,
        start_time=start_time,
        end_time=end_time,
        location=location or "",
        notes=notes or "",
        max_bookings=max_bookings,
        current_bookings=0,
        status=SLOT_AVAILABLE,
    )
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return slot


def staff_slots(db: Session, staff_id: int) -> List[TimeSlot]:
    return (
        db.query(TimeSlot)
        .filter(TimeSlot.staff_id == staff_id)
        .order_by(TimeSlot.date, TimeSlot.start_time)
        .all()
    )


def available_slots(
    db: Session,
    staff_id: Optional[int] = None,
    on_date: Optional[date] = None,
) -> List[TimeSlot]:
    query = db.query(TimeSlot).filter(TimeSlot.status == SLOT_AVAILABLE)
    if staff_id is not None:
        query = query.filter(TimeSlot.staff_id == staff_id)
    if on_date is not None:
        query = query.filter(TimeSlot.date == on_date)
    return query.order_by(TimeSlot.date, TimeSlot.start_time).all()

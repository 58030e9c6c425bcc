import pytest

from eventix import appointments, slots
from eventix.auth import Identity
from eventix.errors import InvalidInputError, NotFoundError, SlotFullError
from eventix.models import (
    APPOINTMENT_BOOKED,
    APPOINTMENT_CANCELLED,
    ROLE_STAFF,
    SLOT_AVAILABLE,
    SLOT_BOOKED,
    Appointment,
)

from .conftest import identity, make_slot, make_staff, make_user


def book(db, slot_id, requester):
    return appointments.create(
        db,
        slot_id=slot_id,
        requester=requester,
        user_name=requester.name,
        user_email=requester.email,
        purpose="Project review",
    )


def test_booking_takes_capacity(db):
    slot = make_slot(db, make_staff(db).id, max_bookings=2)
    student = identity(make_user(db))

    appointment = book(db, slot.id, student)

    assert appointment.status == APPOINTMENT_BOOKED
    assert appointment.staff_id == slot.staff_id
    assert appointment.user_id == student.id
    db.refresh(slot)
    assert (slot.current_bookings, slot.status) == (1, SLOT_AVAILABLE)


def test_full_slot_creates_no_appointment(db):
    slot = make_slot(db, make_staff(db).id, max_bookings=1)
    first = identity(make_user(db))
    second = identity(make_user(db, email="second@example.edu"))
    book(db, slot.id, first)

    with pytest.raises(SlotFullError):
        book(db, slot.id, second)

    assert db.query(Appointment).count() == 1


def test_missing_fields_reserve_nothing(db):
    slot = make_slot(db, make_staff(db).id)
    student = identity(make_user(db))

    with pytest.raises(InvalidInputError):
        appointments.create(db, slot.id, student, user_name="", user_email="a@b.c", purpose="x")

    db.refresh(slot)
    assert slot.current_bookings == 0


def test_cancel_releases_and_reopens(db):
    slot = make_slot(db, make_staff(db).id, max_bookings=2)
    first = identity(make_user(db))
    second = identity(make_user(db, email="second@example.edu"))
    appointment = book(db, slot.id, first)
    book(db, slot.id, second)
    db.refresh(slot)
    assert slot.status == SLOT_BOOKED

    cancelled = appointments.cancel(db, appointment.id, actor=first)

    assert cancelled.status == APPOINTMENT_CANCELLED
    db.refresh(slot)
    assert (slot.current_bookings, slot.status) == (1, SLOT_AVAILABLE)


def test_cancel_twice_releases_once(db):
    slot = make_slot(db, make_staff(db).id, max_bookings=3)
    first = identity(make_user(db))
    second = identity(make_user(db, email="second@example.edu"))
    appointment = book(db, slot.id, first)
    book(db, slot.id, second)

    appointments.cancel(db, appointment.id, actor=first)
    appointments.cancel(db, appointment.id, actor=first)

    db.refresh(slot)
    assert slot.current_bookings == 1


def test_cancel_is_scoped_to_owner(db):
    slot = make_slot(db, make_staff(db).id)
    owner = identity(make_user(db))
    stranger = identity(make_user(db, email="stranger@example.edu"))
    appointment = book(db, slot.id, owner)

    with pytest.raises(NotFoundError):
        appointments.cancel(db, appointment.id, actor=stranger)


def test_status_cancelled_releases_capacity(db):
    member = make_staff(db)
    slot = make_slot(db, member.id, max_bookings=1)
    student = identity(make_user(db))
    appointment = book(db, slot.id, student)
    staff_identity = Identity(id=member.id, email=member.email, name=member.name, role=ROLE_STAFF)

    updated = appointments.set_status(db, appointment.id, "cancelled", "Out sick", actor=staff_identity)

    assert updated.status == APPOINTMENT_CANCELLED
    assert updated.notes == "Out sick"
    db.refresh(slot)
    assert (slot.current_bookings, slot.status) == (0, SLOT_AVAILABLE)


def test_failed_cancellation_keeps_status_and_notes(db, monkeypatch):
    member = make_staff(db)
    slot = make_slot(db, member.id, max_bookings=1)
    appointment = book(db, slot.id, identity(make_user(db)))
    staff_identity = Identity(id=member.id, email=member.email, name=member.name, role=ROLE_STAFF)

    def broken_release(session, slot_id):
        raise RuntimeError("release failed")

    monkeypatch.setattr(slots, "release", broken_release)
    with pytest.raises(RuntimeError):
        appointments.set_status(db, appointment.id, "CANCELLED", "Out sick", actor=staff_identity)

    db.refresh(appointment)
    assert (appointment.status, appointment.notes) == (APPOINTMENT_BOOKED, "")
    db.refresh(slot)
    assert slot.current_bookings == 1


def test_status_change_keeps_capacity(db):
    member = make_staff(db)
    slot = make_slot(db, member.id, max_bookings=1)
    appointment = book(db, slot.id, identity(make_user(db)))
    staff_identity = Identity(id=member.id, email=member.email, name=member.name, role=ROLE_STAFF)

    updated = appointments.set_status(db, appointment.id, "COMPLETED", actor=staff_identity)

    assert updated.status == "COMPLETED"
    db.refresh(slot)
    assert slot.current_bookings == 1


def test_cancelled_appointment_cannot_be_revived(db):
    slot = make_slot(db, make_staff(db).id)
    student = identity(make_user(db))
    appointment = book(db, slot.id, student)
    appointments.cancel(db, appointment.id)

    with pytest.raises(InvalidInputError):
        appointments.set_status(db, appointment.id, APPOINTMENT_BOOKED)


def test_other_staff_cannot_touch_appointment(db):
    slot = make_slot(db, make_staff(db).id)
    appointment = book(db, slot.id, identity(make_user(db)))
    outsider = make_staff(db, email="outsider@example.edu")
    outsider_identity = Identity(id=outsider.id, email=outsider.email, name=outsider.name, role=ROLE_STAFF)

    with pytest.raises(NotFoundError):
        appointments.set_status(db, appointment.id, "COMPLETED", actor=outsider_identity)


def test_listings(db):
    member = make_staff(db)
    slot = make_slot(db, member.id, max_bookings=2)
    student = identity(make_user(db))
    book(db, slot.id, student)

    assert len(appointments.for_user(db, student.id)) == 1
    assert len(appointments.for_staff(db, member.id)) == 1
    assert appointments.for_user(db, student.id + 100) == []

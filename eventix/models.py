# eventix/models.py
from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base
from .tokens import utcnow

# Roles
ROLE_USER = "USER"
ROLE_CLUB = "CLUB"
ROLE_ADMIN = "ADMIN"
ROLE_STAFF = "STAFF"

# TimeSlot.status
SLOT_AVAILABLE = "AVAILABLE"
SLOT_BOOKED = "BOOKED"

# Appointment.status (open set, these two drive capacity)
APPOINTMENT_BOOKED = "BOOKED"
APPOINTMENT_CANCELLED = "CANCELLED"

# TeamRegistration.status
TEAM_ACTIVE = "ACTIVE"
TEAM_CANCELLED = "CANCELLED"

# TeamMember.status
MEMBER_PENDING = "PENDING"
MEMBER_CONFIRMED = "CONFIRMED"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    user_type = Column(String(20), nullable=False, default=ROLE_USER)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")


class Staff(Base):
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(50), nullable=True)
    department = Column(String(200), nullable=True, default="General")
    designation = Column(String(200), nullable=True, default="Staff")
    bio = Column(Text, nullable=True)
    avatar = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    time_slots = relationship("TimeSlot", back_populates="staff")


class StaffOtp(Base):
    __tablename__ = "staff_otp_verification"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=False)
    name = Column(String(200), nullable=True)
    otp = Column(String(10), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), unique=True, nullable=False)
    description = Column(Text, nullable=False)
    mode = Column(String(50), nullable=False)
    location = Column(String(200), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    poster = Column(String(500), nullable=True)
    registration_link = Column(String(500), unique=True, nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    category = Column(String(100), nullable=False)
    created_by = Column(String(255), nullable=True)
    max_participants = Column(Integer, nullable=False, default=100)
    registered_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    registrations = relationship("EventRegistration", back_populates="event", cascade="all, delete-orphan")
    team_registrations = relationship("TeamRegistration", back_populates="event", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("registered_count >= 0", name="ck_event_registered_nonnegative"),
    )


class EventRegistration(Base):
    __tablename__ = "event_registrations"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    event = relationship("Event", back_populates="registrations")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_registration"),
    )


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    roll_no = Column(String(50), nullable=False)
    email_personal = Column(String(255), nullable=True)
    email_chitkara = Column(String(255), nullable=False)
    logo = Column(String(500), nullable=True)
    phone = Column(String(50), nullable=True)
    university = Column(String(200), nullable=True)
    location = Column(String(200), nullable=True)
    course = Column(String(200), nullable=True)
    year_of_study = Column(String(20), nullable=True)
    skill = Column(JSON, nullable=False, default=list)
    education = Column(JSON, nullable=False, default=dict)
    events_added = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="profile")


class ClubRequest(Base):
    __tablename__ = "pending_club_approvals"

    id = Column(Integer, primary_key=True, index=True)
    club_name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    password = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime, nullable=False, default=utcnow)


class Club(Base):
    __tablename__ = "clubs"

    id = Column(Integer, primary_key=True, index=True)
    club_name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    is_approved = Column(Boolean, nullable=False, default=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class TimeSlot(Base):
    __tablename__ = "time_slots"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    location = Column(String(200), nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    max_bookings = Column(Integer, nullable=False, default=1)
    current_bookings = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=SLOT_AVAILABLE)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    staff = relationship("Staff", back_populates="time_slots")
    appointments = relationship("Appointment", back_populates="time_slot")

    __table_args__ = (
        CheckConstraint("max_bookings >= 1", name="ck_slot_capacity_positive"),
        CheckConstraint(
            "current_bookings >= 0 AND current_bookings <= max_bookings",
            name="ck_slot_bookings_within_capacity",
        ),
    )


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    time_slot_id = Column(Integer, ForeignKey("time_slots.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user_name = Column(String(200), nullable=False)
    user_email = Column(String(255), nullable=False)
    user_phone = Column(String(50), nullable=False, default="")
    purpose = Column(Text, nullable=False)
    status = Column(String(30), nullable=False, default=APPOINTMENT_BOOKED)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=utcnow)

    time_slot = relationship("TimeSlot", back_populates="appointments")
    staff = relationship("Staff")


class TeamRegistration(Base):
    __tablename__ = "team_registrations"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    event_title = Column(String(200), nullable=False)
    leader_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    leader_email = Column(String(255), nullable=False)
    leader_name = Column(String(200), nullable=False)
    team_size = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=TEAM_ACTIVE)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    event = relationship("Event", back_populates="team_registrations")
    members = relationship(
        "TeamMember",
        back_populates="team_registration",
        cascade="all, delete-orphan",
        order_by="TeamMember.id",
    )


class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    team_registration_id = Column(
        Integer, ForeignKey("team_registrations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    email = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False, default="")
    status = Column(String(20), nullable=False, default=MEMBER_PENDING)
    confirmed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    team_registration = relationship("TeamRegistration", back_populates="members")
    token = relationship(
        "ConfirmationToken", back_populates="team_member", uselist=False, cascade="all, delete-orphan"
    )


class ConfirmationToken(Base):
    __tablename__ = "confirmation_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(64), unique=True, index=True, nullable=False)
    team_member_id = Column(
        Integer, ForeignKey("team_members.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    team_member = relationship("TeamMember", back_populates="token")

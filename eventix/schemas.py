# eventix/schemas.py
from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# =========================
# Users
# =========================

class UserRegister(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class PasswordChange(CamelModel):
    old_password: str = Field(alias="oldPassword", min_length=1)
    new_password: str = Field(alias="newPassword", min_length=1)


class AccountUpdate(CamelModel):
    name: str = Field(min_length=1)


class UserOut(OrmModel):
    id: int
    name: str
    email: str
    user_type: str
    created_at: dt.datetime
    updated_at: dt.datetime


# =========================
# Staff
# =========================

class StaffOtpRequest(CamelModel):
    email: EmailStr
    name: Optional[str] = None


class StaffOtpVerify(CamelModel):
    email: EmailStr
    otp: str = Field(min_length=1)


class StaffUpdate(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None


class StaffOut(OrmModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None
    is_active: bool


# =========================
# Time slots & appointments
# =========================

class TimeSlotCreate(CamelModel):
    date: dt.date
    start_time: dt.time = Field(alias="startTime")
    end_time: dt.time = Field(alias="endTime")
    location: str = ""
    notes: str = ""
    max_bookings: int = Field(default=1, alias="maxBookings", ge=1)


class TimeSlotOut(OrmModel):
    id: int
    staff_id: int
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    location: str
    notes: str
    max_bookings: int
    current_bookings: int
    status: str


class AppointmentCreate(CamelModel):
    time_slot_id: int = Field(alias="timeSlotId")
    user_name: str = Field(alias="userName", min_length=1)
    user_email: EmailStr = Field(alias="userEmail")
    user_phone: str = Field(default="", alias="userPhone")
    purpose: str = Field(min_length=1)


class AppointmentStatusUpdate(CamelModel):
    status: str = Field(min_length=1)
    notes: str = ""


class AppointmentOut(OrmModel):
    id: int
    time_slot_id: int
    staff_id: int
    user_id: int
    user_name: str
    user_email: str
    user_phone: str
    purpose: str
    status: str
    notes: str
    created_at: dt.datetime


class AppointmentDetailOut(AppointmentOut):
    time_slot: TimeSlotOut


# =========================
# Teams
# =========================

class TeamMemberIn(CamelModel):
    email: EmailStr
    name: str = ""


class TeamRegistrationCreate(CamelModel):
    event_id: int = Field(alias="eventId")
    team_size: int = Field(alias="teamSize", ge=1)
    members: List[TeamMemberIn] = Field(min_length=1)


class TeamMemberOut(OrmModel):
    id: int
    email: str
    name: str
    status: str
    confirmed_at: Optional[dt.datetime] = None


class TeamRegistrationOut(OrmModel):
    id: int
    event_id: int
    event_title: str
    leader_id: int
    leader_email: str
    leader_name: str
    team_size: int
    status: str
    created_at: dt.datetime


class TeamRegistrationDetailOut(TeamRegistrationOut):
    members: List[TeamMemberOut] = []


# =========================
# Events
# =========================

class EventCreate(CamelModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    mode: str = Field(min_length=1)
    location: str = Field(min_length=1)
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    registration_link: str = Field(min_length=1)
    category: str = Field(min_length=1)
    tags: List[str] = []
    poster: Optional[str] = None
    max_participants: int = Field(default=100, ge=1)


class EventUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    mode: Optional[str] = None
    location: Optional[str] = None
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    registration_link: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    poster: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, ge=1)


class EventOut(OrmModel):
    id: int
    title: str
    description: str
    mode: str
    location: str
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    poster: Optional[str] = None
    registration_link: str
    tags: List[str]
    category: str
    created_by: Optional[str] = None
    max_participants: int
    registered_count: int
    created_at: dt.datetime


class EventRegister(CamelModel):
    event_id: int = Field(alias="eventId")


# =========================
# Profiles
# =========================

class ProfileCreate(CamelModel):
    name: str = Field(min_length=1)
    username: str = Field(min_length=1)
    roll_no: str = Field(min_length=1)
    email_chitkara: EmailStr
    email_personal: Optional[EmailStr] = None
    logo: Optional[str] = None
    phone: Optional[str] = None
    university: Optional[str] = None
    location: Optional[str] = None
    course: Optional[str] = None
    year_of_study: Optional[str] = None
    skill: List[str] = []
    education: Dict[str, Any] = {}


class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    username: Optional[str] = None
    roll_no: Optional[str] = None
    email_chitkara: Optional[EmailStr] = None
    email_personal: Optional[EmailStr] = None
    logo: Optional[str] = None
    phone: Optional[str] = None
    university: Optional[str] = None
    location: Optional[str] = None
    course: Optional[str] = None
    year_of_study: Optional[str] = None
    skill: Optional[List[str]] = None
    education: Optional[Dict[str, Any]] = None


class ProfileOut(OrmModel):
    id: int
    user_id: int
    name: str
    username: str
    roll_no: str
    email_personal: Optional[str] = None
    email_chitkara: str
    logo: Optional[str] = None
    phone: Optional[str] = None
    university: Optional[str] = None
    location: Optional[str] = None
    course: Optional[str] = None
    year_of_study: Optional[str] = None
    skill: List[str]
    education: Dict[str, Any]
    events_added: List[Any]
    created_at: dt.datetime


# =========================
# Organisers / clubs
# =========================

class ClubRequestCreate(CamelModel):
    club_name: str = Field(alias="clubName", min_length=1)
    email: EmailStr
    phone: str = Field(min_length=1)
    description: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ClubRequestOut(OrmModel):
    id: int
    club_name: str
    email: str
    phone: str
    description: str
    status: str
    created_at: dt.datetime


class ClubOut(OrmModel):
    id: int
    club_name: str
    email: str
    phone: Optional[str] = None
    description: Optional[str] = None
    is_approved: bool
    user_id: int
    created_at: dt.datetime


# =========================
# Email & poster assistant
# =========================

class CustomEmail(CamelModel):
    to: EmailStr
    subject: str = Field(min_length=1)
    html_content: Optional[str] = Field(default=None, alias="htmlContent")
    text_content: Optional[str] = Field(default=None, alias="textContent")


class EventReminder(CamelModel):
    event_id: int = Field(alias="eventId")
    recipients: List[EmailStr] = Field(min_length=1)


class PosterRequest(CamelModel):
    event_title: str = Field(alias="eventTitle", min_length=1)
    event_description: str = Field(alias="eventDescription", min_length=1)
    event_type: Optional[str] = Field(default=None, alias="eventType")
    theme: Optional[str] = None

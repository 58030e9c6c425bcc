# eventix/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Any, FrozenSet, Iterable, Optional, Type

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session
from starlette.middleware.sessions import SessionMiddleware

from . import (
    appointments,
    auth,
    clubs,
    config,
    events,
    posters,
    profiles,
    slots,
    staff,
    teams,
    users,
)
from .auth import Identity, current_identity, get_admin_emails, require_roles
from .database import get_db, init_db
from .errors import EventixError, InvalidInputError
from .models import ROLE_ADMIN, ROLE_CLUB, ROLE_STAFF, ROLE_USER
from .notifier import Notifier, get_notifier, send_event_reminders
from .schemas import (
    AccountUpdate,
    AppointmentCreate,
    AppointmentDetailOut,
    AppointmentOut,
    AppointmentStatusUpdate,
    ClubOut,
    ClubRequestCreate,
    ClubRequestOut,
    CustomEmail,
    EventCreate,
    EventOut,
    EventRegister,
    EventReminder,
    EventUpdate,
    PasswordChange,
    PosterRequest,
    ProfileCreate,
    ProfileOut,
    ProfileUpdate,
    StaffOtpRequest,
    StaffOtpVerify,
    StaffOut,
    StaffUpdate,
    TeamRegistrationCreate,
    TeamRegistrationDetailOut,
    TeamRegistrationOut,
    TimeSlotCreate,
    TimeSlotOut,
    UserLogin,
    UserOut,
    UserRegister,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Eventix API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    SessionMiddleware,
    secret_key=config.SESSION_SECRET,
    max_age=config.SESSION_MAX_AGE,
    same_site="lax",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept"],
)

account = require_roles(ROLE_USER, ROLE_CLUB, ROLE_ADMIN)
admin_only = require_roles(ROLE_ADMIN)
staff_only = require_roles(ROLE_STAFF)


def ok(data: Any = None, message: str = "OK", status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "statusCode": status_code,
            "data": data if data is not None else {},
            "message": message,
            "success": status_code < 400,
        },
    )


def dump(schema: Type[BaseModel], obj: Any) -> dict:
    return schema.model_validate(obj).model_dump(mode="json")


def dump_all(schema: Type[BaseModel], objs: Iterable[Any]) -> list:
    return [dump(schema, obj) for obj in objs]


@app.exception_handler(EventixError)
async def eventix_error_handler(request: Request, exc: EventixError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    else:
        logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "statusCode": exc.status_code,
            "message": exc.message,
            "errors": [],
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=InvalidInputError.status_code,
        content={
            "success": False,
            "statusCode": InvalidInputError.status_code,
            "message": "All required fields must be provided",
            "errors": errors,
        },
    )


@app.get("/health")
async def health():
    return {
        "success": True,
        "message": "Server is healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# =========================
# Users
# =========================

@app.post("/api/v1/users/register")
async def register_user(
    request: Request,
    body: UserRegister,
    db: Session = Depends(get_db),
    admin_emails: FrozenSet[str] = Depends(get_admin_emails),
):
    user = users.register(db, body.name, body.email, body.password, admin_emails=admin_emails)
    auth.login(request, users.identity_of(user))
    return ok({"user": dump(UserOut, user)}, "User registered successfully", 201)


@app.post("/api/v1/users/login")
async def login_user(request: Request, body: UserLogin, db: Session = Depends(get_db)):
    user = users.authenticate(db, body.email, body.password)
    auth.login(request, users.identity_of(user))
    return ok({"user": dump(UserOut, user)}, "User logged in successfully")


@app.post("/api/v1/users/logout")
async def logout_user(request: Request, identity: Identity = Depends(current_identity)):
    auth.logout(request)
    return ok(message="User logged out successfully")


@app.get("/api/v1/users/current-user")
async def get_current_user(identity: Identity = Depends(account), db: Session = Depends(get_db)):
    return ok(dump(UserOut, users.get_user(db, identity.id)), "Current user fetched successfully")


@app.post("/api/v1/users/change-password")
async def change_password(
    body: PasswordChange,
    identity: Identity = Depends(account),
    db: Session = Depends(get_db),
):
    users.change_password(db, identity.id, body.old_password, body.new_password)
    return ok(message="Password changed successfully")


@app.patch("/api/v1/users/update-account")
async def update_account(
    request: Request,
    body: AccountUpdate,
    identity: Identity = Depends(account),
    db: Session = Depends(get_db),
):
    user = users.update_account(db, identity.id, body.name)
    auth.login(request, users.identity_of(user))
    return ok(dump(UserOut, user), "Account details updated successfully")


@app.get("/api/v1/users/all")
async def get_all_users(identity: Identity = Depends(admin_only), db: Session = Depends(get_db)):
    return ok(dump_all(UserOut, users.all_users(db)), "All users fetched successfully")


# =========================
# Staff
# =========================

@app.post("/api/v1/staff/send-otp")
async def send_staff_otp(
    body: StaffOtpRequest,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    staff.send_otp(db, notifier, body.email, body.name)
    return ok(message="OTP sent successfully")


@app.post("/api/v1/staff/verify-otp")
async def verify_staff_otp(request: Request, body: StaffOtpVerify, db: Session = Depends(get_db)):
    member = staff.verify_otp(db, body.email, body.otp)
    auth.login(request, staff.identity_of(member))
    return ok({"staff": dump(StaffOut, member)}, "Staff logged in successfully")


@app.get("/api/v1/staff")
async def list_staff(db: Session = Depends(get_db)):
    return ok(dump_all(StaffOut, staff.active_staff(db)), "Staff fetched successfully")


@app.patch("/api/v1/staff/profile")
async def update_staff_profile(
    request: Request,
    body: StaffUpdate,
    identity: Identity = Depends(staff_only),
    db: Session = Depends(get_db),
):
    member = staff.update_profile(db, identity.id, body)
    auth.login(request, staff.identity_of(member))
    return ok(dump(StaffOut, member), "Staff profile updated successfully")


# =========================
# Time slots & appointments
# =========================

@app.post("/api/v1/appointments/time-slots")
async def create_time_slot(
    body: TimeSlotCreate,
    identity: Identity = Depends(staff_only),
    db: Session = Depends(get_db),
):
    slot = slots.create_slot(
        db,
        staff_id=identity.id,
        slot_date=body.date,
        start_time=body.start_time,
        end_time=body.end_time,
        location=body.location,
        notes=body.notes,
        max_bookings=body.max_bookings,
    )
    return ok(dump(TimeSlotOut, slot), "Time slot created successfully", 201)


@app.get("/api/v1/appointments/time-slots/available")
async def get_available_time_slots(
    staff_id: Optional[int] = Query(None, alias="staffId"),
    on_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
):
    found = slots.available_slots(db, staff_id=staff_id, on_date=on_date)
    return ok(dump_all(TimeSlotOut, found), "Available time slots fetched successfully")


@app.get("/api/v1/appointments/time-slots/staff/{staff_id}")
async def get_staff_time_slots(staff_id: int, db: Session = Depends(get_db)):
    return ok(dump_all(TimeSlotOut, slots.staff_slots(db, staff_id)), "Time slots fetched successfully")


@app.post("/api/v1/appointments/book")
async def book_appointment(
    body: AppointmentCreate,
    identity: Identity = Depends(account),
    db: Session = Depends(get_db),
):
    appointment = appointments.create(
        db,
        slot_id=body.time_slot_id,
        requester=identity,
        user_name=body.user_name,
        user_email=body.user_email,
        purpose=body.purpose,
        user_phone=body.user_phone,
    )
    return ok(dump(AppointmentOut, appointment), "Appointment booked successfully", 201)


@app.get("/api/v1/appointments/my")
async def get_user_appointments(identity: Identity = Depends(account), db: Session = Depends(get_db)):
    found = appointments.for_user(db, identity.id)
    return ok(dump_all(AppointmentDetailOut, found), "Appointments fetched successfully")


@app.get("/api/v1/appointments/staff")
async def get_staff_appointments(identity: Identity = Depends(staff_only), db: Session = Depends(get_db)):
    found = appointments.for_staff(db, identity.id)
    return ok(dump_all(AppointmentDetailOut, found), "Appointments fetched successfully")


@app.patch("/api/v1/appointments/{appointment_id}/cancel")
async def cancel_appointment(
    appointment_id: int,
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    appointment = appointments.cancel(db, appointment_id, actor=identity)
    return ok(dump(AppointmentOut, appointment), "Appointment cancelled successfully")


@app.patch("/api/v1/appointments/{appointment_id}/status")
async def update_appointment_status(
    appointment_id: int,
    body: AppointmentStatusUpdate,
    identity: Identity = Depends(staff_only),
    db: Session = Depends(get_db),
):
    appointment = appointments.set_status(db, appointment_id, body.status, body.notes, actor=identity)
    return ok(dump(AppointmentOut, appointment), "Appointment status updated successfully")


# =========================
# Teams
# =========================

@app.post("/api/v1/team/register")
async def create_team_registration(
    body: TeamRegistrationCreate,
    identity: Identity = Depends(account),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    result = teams.create_registration(
        db,
        notifier,
        event_id=body.event_id,
        leader=identity,
        team_size=body.team_size,
        members=[teams.MemberInvite(email=m.email, name=m.name) for m in body.members],
    )
    data = dump(TeamRegistrationDetailOut, result.registration)
    data["failed_notifications"] = result.failed_notifications
    message = "Team registration created successfully"
    if result.failed_notifications:
        message += f" ({len(result.failed_notifications)} confirmation email(s) could not be sent)"
    return ok(data, message, 201)


@app.api_route("/api/v1/team/confirm/{token}", methods=["GET", "POST"])
async def confirm_team_member(token: str, db: Session = Depends(get_db)):
    teams.confirm(db, token)
    return ok(message="Team member confirmed successfully")


@app.get("/api/v1/team/my")
async def get_user_team_registrations(identity: Identity = Depends(account), db: Session = Depends(get_db)):
    found = teams.registrations_for_leader(db, identity.id)
    return ok(dump_all(TeamRegistrationOut, found), "Team registrations fetched successfully")


@app.get("/api/v1/team/{registration_id}")
async def get_team_registration(
    registration_id: int,
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    registration = teams.get_registration(db, registration_id)
    return ok(dump(TeamRegistrationDetailOut, registration), "Team registration fetched successfully")


@app.patch("/api/v1/team/{registration_id}/cancel")
async def cancel_team_registration(
    registration_id: int,
    identity: Identity = Depends(account),
    db: Session = Depends(get_db),
):
    teams.cancel_registration(db, registration_id, identity)
    return ok(message="Team registration cancelled successfully")


# =========================
# Events
# =========================

@app.get("/api/v1/admin/events")
async def get_all_events(db: Session = Depends(get_db)):
    return ok(dump_all(EventOut, events.all_events(db)), "Events fetched successfully")


@app.get("/api/v1/admin/events/search")
async def search_events(
    query: Optional[str] = None,
    category: Optional[str] = None,
    mode: Optional[str] = None,
    db: Session = Depends(get_db),
):
    found = events.search_events(db, query=query, category=category, mode=mode)
    return ok(dump_all(EventOut, found), "Search results fetched successfully")


@app.get("/api/v1/admin/events/{event_id}")
async def get_event(event_id: int, db: Session = Depends(get_db)):
    return ok(dump(EventOut, events.get_event(db, event_id)), "Event fetched successfully")


@app.post("/api/v1/admin/events")
async def create_event(
    body: EventCreate,
    identity: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    event = events.create_event(db, body, identity)
    return ok(dump(EventOut, event), "Event created successfully", 201)


@app.patch("/api/v1/admin/events/{event_id}")
async def update_event(
    event_id: int,
    body: EventUpdate,
    identity: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    event = events.update_event(db, event_id, body)
    return ok(dump(EventOut, event), "Event updated successfully")


@app.delete("/api/v1/admin/events/{event_id}")
async def delete_event(
    event_id: int,
    identity: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    events.delete_event(db, event_id)
    return ok(message="Event deleted successfully")


# =========================
# Event registration
# =========================

@app.post("/api/v1/registerEvent")
async def register_for_event(
    body: EventRegister,
    identity: Identity = Depends(account),
    db: Session = Depends(get_db),
):
    events.register_for_event(db, body.event_id, identity.id)
    return ok(message="Successfully registered for event")


@app.get("/api/v1/registerEvent")
async def get_registered_events(identity: Identity = Depends(account), db: Session = Depends(get_db)):
    found = events.registered_events(db, identity.id)
    return ok(dump_all(EventOut, found), "Registered events fetched successfully")


@app.delete("/api/v1/registerEvent/{event_id}")
async def unregister_from_event(
    event_id: int,
    identity: Identity = Depends(account),
    db: Session = Depends(get_db),
):
    events.unregister_from_event(db, event_id, identity.id)
    return ok(message="Successfully unregistered from event")


# =========================
# Profiles
# =========================

@app.post("/api/v1/profile")
async def create_profile(
    body: ProfileCreate,
    identity: Identity = Depends(account),
    db: Session = Depends(get_db),
):
    profile = profiles.create_profile(db, identity.id, body)
    return ok(dump(ProfileOut, profile), "Profile created successfully", 201)


@app.get("/api/v1/profile")
async def get_profile(identity: Identity = Depends(account), db: Session = Depends(get_db)):
    return ok(dump(ProfileOut, profiles.get_own(db, identity.id)), "Profile fetched successfully")


@app.patch("/api/v1/profile")
async def update_profile(
    body: ProfileUpdate,
    identity: Identity = Depends(account),
    db: Session = Depends(get_db),
):
    profile = profiles.update_profile(db, identity.id, body)
    return ok(dump(ProfileOut, profile), "Profile updated successfully")


@app.delete("/api/v1/profile")
async def delete_profile(identity: Identity = Depends(account), db: Session = Depends(get_db)):
    profiles.delete_profile(db, identity.id)
    return ok(message="Profile deleted successfully")


@app.get("/api/v1/profile/all/profiles")
async def get_all_profiles(identity: Identity = Depends(admin_only), db: Session = Depends(get_db)):
    return ok(dump_all(ProfileOut, profiles.all_profiles(db)), "All profiles fetched successfully")


@app.get("/api/v1/profile/{username}")
async def get_profile_by_username(username: str, db: Session = Depends(get_db)):
    return ok(dump(ProfileOut, profiles.get_by_username(db, username)), "Profile fetched successfully")


# =========================
# Organisers
# =========================

@app.post("/api/v1/organiser/request")
async def create_club_request(body: ClubRequestCreate, db: Session = Depends(get_db)):
    request = clubs.submit_request(db, body)
    return ok({"id": request.id}, "Club approval request submitted", 201)


@app.get("/api/v1/organiser/pending")
async def get_pending_clubs(identity: Identity = Depends(admin_only), db: Session = Depends(get_db)):
    return ok(dump_all(ClubRequestOut, clubs.pending_requests(db)), "Pending clubs fetched successfully")


@app.patch("/api/v1/organiser/approve/{request_id}")
async def approve_club(
    request_id: int,
    identity: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    club = clubs.approve(db, request_id)
    return ok(dump(ClubOut, club), "Club approved successfully")


@app.patch("/api/v1/organiser/reject/{request_id}")
async def reject_club(
    request_id: int,
    identity: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    clubs.reject(db, request_id)
    return ok(message="Club rejected")


@app.get("/api/v1/organiser/clubs")
async def get_all_clubs(db: Session = Depends(get_db)):
    return ok(dump_all(ClubOut, clubs.approved_clubs(db)), "Clubs fetched successfully")


# =========================
# Email
# =========================

@app.post("/api/v1/email/send")
async def send_custom_email(
    body: CustomEmail,
    identity: Identity = Depends(admin_only),
    notifier: Notifier = Depends(get_notifier),
):
    if not body.html_content and not body.text_content:
        raise InvalidInputError("Recipient, subject, and content are required")
    message_id = notifier.send(
        to=body.to, subject=body.subject, html=body.html_content, text=body.text_content
    )
    return ok({"messageId": message_id}, "Email sent successfully")


@app.post("/api/v1/email/reminder")
async def send_event_reminder(
    body: EventReminder,
    identity: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    event = events.get_event(db, body.event_id)
    sent, failed = send_event_reminders(notifier, event, list(body.recipients))
    message = "Event reminders sent successfully"
    if failed:
        message = f"Event reminders sent to {len(sent)} of {len(sent) + len(failed)} recipients"
    return ok({"sent": sent, "failed": failed}, message)


# =========================
# Poster assistant
# =========================

@app.post("/api/v1/poster/suggestions")
async def generate_poster_suggestions(
    body: PosterRequest,
    identity: Identity = Depends(account),
    llm: Any = Depends(posters.get_llm),
):
    text = await posters.suggest_design(
        llm, body.event_title, body.event_description, body.event_type, body.theme
    )
    return ok({"suggestions": text}, "Poster suggestions generated successfully")


@app.post("/api/v1/poster/taglines")
async def generate_tagline(
    body: PosterRequest,
    identity: Identity = Depends(account),
    llm: Any = Depends(posters.get_llm),
):
    text = await posters.suggest_taglines(llm, body.event_title, body.event_description)
    return ok({"taglines": text}, "Taglines generated successfully")

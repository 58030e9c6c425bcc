from __future__ import annotations

from datetime import date, time
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from eventix import auth, posters
from eventix.auth import Identity, get_admin_emails
from eventix.database import get_db, init_db, make_engine
from eventix.errors import NotificationError
from eventix.main import app
from eventix.models import ROLE_USER, Event, Staff, TimeSlot, User
from eventix.notifier import get_notifier

ADMIN_EMAIL = "admin@example.edu"


class FakeNotifier:
    def __init__(self):
        self.sent: List[dict] = []
        self.fail_for: set = set()

    def send(self, to, subject, html=None, text=None):
        if to in self.fail_for:
            raise NotificationError(f"Failed to send email to {to}")
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        return f"msg-{len(self.sent)}"


class FakeMessage:
    def __init__(self, content):
        self.content = content


class FakeLLM:
    def __init__(self, reply="{}", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    async def ainvoke(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return FakeMessage(self.reply)


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(auth, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def llm():
    return FakeLLM(reply='{"colors": ["#112233"]}')


@pytest.fixture
def client(session_factory, notifier, llm):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[posters.get_llm] = lambda: llm
    app.dependency_overrides[get_admin_emails] = lambda: frozenset({ADMIN_EMAIL})
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# =========================
# Builders
# =========================

def make_user(db, email="student@example.edu", name="Student", role=ROLE_USER) -> User:
    user = User(name=name, email=email, password=auth.hash_password("secret"), user_type=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def identity(user: User) -> Identity:
    return Identity(id=user.id, email=user.email, name=user.name, role=user.user_type)


def make_staff(db, email="staff@example.edu", name="Dr. Staff") -> Staff:
    member = Staff(name=name, email=email)
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def make_slot(db, staff_id: int, max_bookings: int = 1) -> TimeSlot:
    slot = TimeSlot(
        staff_id=staff_id,
        date=date(2026, 11, 2),
        start_time=time(10, 0),
        end_time=time(10, 30),
        max_bookings=max_bookings,
    )
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return slot


def make_event(db, title="Hack Night", max_participants=100) -> Event:
    event = Event(
        title=title,
        description="An evening of hacking",
        mode="OFFLINE",
        location="Block A",
        date=date(2026, 11, 20),
        start_time=time(18, 0),
        end_time=time(23, 0),
        registration_link=f"https://example.edu/{title.lower().replace(' ', '-')}",
        tags=["tech"],
        category="Hackathon",
        max_participants=max_participants,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event

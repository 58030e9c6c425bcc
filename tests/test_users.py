import pytest

from eventix import users
from eventix.errors import AuthenticationError, ConflictError, InvalidInputError
from eventix.models import ROLE_ADMIN, ROLE_USER


def test_password_is_used_as_typed(db):
    user = users.register(db, "Student", "student@example.edu", " secret ")

    assert users.authenticate(db, "student@example.edu", " secret ").id == user.id
    with pytest.raises(AuthenticationError):
        users.authenticate(db, "student@example.edu", "secret")


def test_change_password_with_padded_password(db):
    user = users.register(db, "Student", "student@example.edu", " secret ")

    users.change_password(db, user.id, " secret ", "fresh ")

    assert users.authenticate(db, "student@example.edu", "fresh ").id == user.id
    with pytest.raises(InvalidInputError):
        users.change_password(db, user.id, " secret ", "other")


def test_blank_password_rejected(db):
    with pytest.raises(InvalidInputError):
        users.register(db, "Student", "student@example.edu", "   ")


def test_email_is_normalised_and_unique(db):
    users.register(db, "Student", " Student@Example.edu ", "secret")

    with pytest.raises(ConflictError):
        users.register(db, "Again", "student@example.edu", "secret")
    assert users.authenticate(db, "STUDENT@example.edu", "secret").email == "student@example.edu"


def test_admin_allowlist_picks_role(db):
    admin = users.register(db, "Admin", "admin@example.edu", "secret", admin_emails={"admin@example.edu"})
    student = users.register(db, "Student", "student@example.edu", "secret", admin_emails={"admin@example.edu"})

    assert (admin.user_type, student.user_type) == (ROLE_ADMIN, ROLE_USER)

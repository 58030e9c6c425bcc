# eventix/auth.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Callable, FrozenSet, Optional

import bcrypt
from fastapi import Request

from . import config
from .errors import AuthenticationError, InvalidInputError, PermissionDeniedError

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72
BCRYPT_ROUNDS = 12

SESSION_KEY = "identity"


@dataclass(frozen=True)
class Identity:
    """An already authenticated caller."""

    id: int
    email: str
    name: str
    role: str


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:BCRYPT_MAX_BYTES], hashed.encode("utf-8")
        )
    except ValueError:
        return False


def check_email_domain(email: str, domain: Optional[str] = None) -> None:
    domain = config.ALLOWED_EMAIL_DOMAIN if domain is None else domain
    if domain and not email.lower().endswith("@" + domain):
        raise InvalidInputError(f"Only @{domain} email addresses are allowed")


def get_admin_emails() -> FrozenSet[str]:
    return config.ADMIN_EMAILS


def login(request: Request, identity: Identity) -> None:
    request.session[SESSION_KEY] = asdict(identity)


def logout(request: Request) -> None:
    request.session.clear()


def current_identity(request: Request) -> Identity:
    data = request.session.get(SESSION_KEY)
    if not data:
        raise AuthenticationError()
    try:
        return Identity(**data)
    except TypeError:
        request.session.clear()
        raise AuthenticationError("Invalid session")


def require_roles(*roles: str) -> Callable[[Request], Identity]:
    """Dependency factory for role-guarded routes."""

    def guard(request: Request) -> Identity:
        identity = current_identity(request)
        if identity.role not in roles:
            raise PermissionDeniedError(
                f"Access denied. {' or '.join(r.title() for r in roles)} privileges required."
            )
        return identity

    return guard

"""
auth/service.py -- Registration and login.

register() and login() are the only code paths that create accounts or
issue tokens. Route handlers (api/routes/auth.py) and tests call them
directly with explicit store handles -- there is no module-level database.

Security:
  - login() goes through authenticate_user(), which runs bcrypt even for
    unknown emails. Never inline get_by_email() + verify_password().
  Unknown email, wrong password, and missing fields all produce the same
  AuthError("Invalid credentials") so callers cannot enumerate accounts.

Conflicts:
  register() does not look the email up first. The UNIQUE constraint on
  users.email decides, and IntegrityError becomes ConflictError. This closes
  the window where two concurrent registrations both pass a pre-check.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from activity import service as activity_service
from activity.store import ActivityStore
from auth.models import LoginResult, User
from auth.store import UserStore
from auth.tokens import MAX_PASSWORD_BYTES, authenticate_user, create_access_token, hash_password
from core.errors import AuthError, ConflictError, StorageError, ValidationError

logger = logging.getLogger("irrigation.auth")

INVALID_CREDENTIALS = "Invalid credentials"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def register(
    user_store: UserStore,
    activity_store: ActivityStore,
    email: str | None,
    password: str | None,
    name: str | None = None,
    ip: str | None = None,
    user_agent: str | None = None,
) -> User:
    """Create an account and log a "register" activity entry.

    Returns the stored User. Callers expose only id and email.

    Raises:
        ValidationError: email or password missing, email malformed, or
                         password longer than bcrypt accepts.
        ConflictError:   the email is already registered.
        StorageError:    the database write failed.
    """
    email = normalize_email(email)
    if not email or not password:
        raise ValidationError("Email and password required")
    if not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email address")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

    name = name.strip() if name and name.strip() else None
    user = User(email=email, password_hash=hash_password(password), name=name)
    try:
        user.id = user_store.create_user(user)
    except IntegrityError as exc:
        logger.info("Registration rejected, email already in use: %s", email)
        raise ConflictError("Email already in use") from exc
    except SQLAlchemyError as exc:
        logger.error("Registration failed for %s: %s", email, exc)
        raise StorageError("Registration failed") from exc

    # The account row is already committed. A failed log write surfaces as
    # StorageError and the account stays; a retry then gets ConflictError.
    activity_service.create(activity_store, user.id, "register", ip=ip, user_agent=user_agent)
    logger.info("Registered user %s (id=%s)", email, user.id)
    return user


def login(
    user_store: UserStore,
    activity_store: ActivityStore,
    email: str | None,
    password: str | None,
    ip: str | None = None,
    user_agent: str | None = None,
) -> LoginResult:
    """Verify credentials, issue a bearer token, and log a "login" entry.

    Raises:
        AuthError:    unknown email, wrong password, or missing fields.
        StorageError: the database could not be read or written.
    """
    email = normalize_email(email)
    if not email or not password:
        raise AuthError(INVALID_CREDENTIALS)

    try:
        user = authenticate_user(user_store, email, password)
    except SQLAlchemyError as exc:
        logger.error("Login lookup failed for %s: %s", email, exc)
        raise StorageError("Login failed") from exc
    if user is None:
        logger.info("Login failed for %s from %s", email, ip or "unknown")
        raise AuthError(INVALID_CREDENTIALS)

    token = create_access_token(user.id, user.email, user.roles)
    activity_service.create(activity_store, user.id, "login", ip=ip, user_agent=user_agent)
    logger.info("Login succeeded for user %s (id=%s)", user.email, user.id)
    return LoginResult(token=token, user=user)

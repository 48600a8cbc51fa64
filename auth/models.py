"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). The store and the
service do the work; route handlers map these onto api/models.py responses.

Layer rule: no imports from api/, activity/, or client/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class User:
    """A registered account.

    email is the identity key and is always stored lowercase. password_hash is
    the bcrypt digest -- the raw password never reaches this object.

    id is None before the record is written to the database.
    """

    email: str
    password_hash: str
    name: str | None = None
    roles: list[str] = field(default_factory=lambda: ["user"])
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class LoginResult:
    """Outcome of a successful login: the signed bearer token and its owner."""

    token: str
    user: User

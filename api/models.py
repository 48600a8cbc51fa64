"""
API request and response models for the irrigation account REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
activity/models.py, which own the internal domain representation. Route
handlers map between the two.

Request fields that the services validate (email, password, action) are
Optional here on purpose: a missing field reaches the service and comes back
as a ValidationError with a readable message instead of a pydantic dump.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from activity.models import ActivityEntry
from auth.models import User

# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = None
    name: Optional[str] = Field(default=None, max_length=255)


class RegisterResponse(BaseModel):
    """Public summary of a new account. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = None


class UserSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: Optional[str] = None
    roles: list[str]

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(id=user.id, email=user.email, name=user.name, roles=list(user.roles))


class LoginResponse(BaseModel):
    """Response for POST /api/auth/login."""

    model_config = ConfigDict(frozen=True)

    token: str
    user: UserSummary


# ---------------------------------------------------------------------------
# Activity log
# ---------------------------------------------------------------------------


class ActivityCreate(BaseModel):
    """Request body for POST /api/activity."""

    action: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class ActivityResponse(BaseModel):
    """One activity log entry as returned to its owner."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    action: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: str

    @classmethod
    def from_entry(cls, entry: ActivityEntry) -> "ActivityResponse":
        """Factory colocated with the output model rather than in each route."""
        return cls(
            id=entry.id,
            user_id=entry.user_id,
            action=entry.action,
            metadata=entry.metadata,
            ip=entry.ip,
            user_agent=entry.user_agent,
            created_at=entry.created_at,
        )

"""
api/routes/auth.py -- Account registration and login endpoints.

Routes:
  POST /api/auth/register  -- create an account; 201 {id, email}
  POST /api/auth/login     -- verify credentials; 200 {token, user}
  GET  /api/auth/me        -- current user info (requires bearer token)

Security:
  - register and login are rate-limited per client IP (LOGIN_RATE_LIMIT).
  - login goes through auth.service.login(), which keeps bcrypt timing
    equal for unknown and known emails.
  - Cache-Control: no-store on login responses (they carry a token).

Errors raised by the services (ValidationError, ConflictError, AuthError,
StorageError) are rendered by the AppError handler in api/main.py.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from activity.store import ActivityStore
from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse, UserSummary
from auth import service as auth_service
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import UserStore
from core.config import get_settings

# Auth policy:
# - POST /api/auth/register: public
# - POST /api/auth/login:    public
# - GET  /api/auth/me:       requires auth (get_current_user)
router = APIRouter()


def _login_limit() -> str:
    # Read per request so LOGIN_RATE_LIMIT changes apply without re-importing.
    return get_settings().login_rate_limit


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
@limiter.limit(_login_limit)  # below @router so the registered endpoint is the limited one
def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Create an account and return its public summary (never the hash)."""
    user_store: UserStore = request.app.state.user_store
    activity_store: ActivityStore = request.app.state.activity_store
    user = auth_service.register(
        user_store,
        activity_store,
        body.email,
        body.password,
        name=body.name,
        ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return RegisterResponse(id=user.id, email=user.email)


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(_login_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a bearer token.

    Unknown email and wrong password return the same 401 body.
    """
    user_store: UserStore = request.app.state.user_store
    activity_store: ActivityStore = request.app.state.activity_store
    result = auth_service.login(
        user_store,
        activity_store,
        body.email,
        body.password,
        ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(token=result.token, user=UserSummary.from_user(result.user)).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=UserSummary)
def me(current_user: User = Depends(get_current_user)) -> UserSummary:
    """Return identity information for the bearer of the token."""
    return UserSummary.from_user(current_user)

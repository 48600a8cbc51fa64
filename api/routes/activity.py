"""
api/routes/activity.py -- The caller's activity log.

Routes:
  POST /api/activity  -- append an entry for the current user; 201
  GET  /api/activity  -- the current user's entries, newest first

Both require a bearer token. The user id always comes from the token, never
from the request body, so one user cannot write into or read another user's
log. GET sets X-Total-Count so clients can page with limit/offset.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response

from activity import service as activity_service
from activity.store import ActivityStore
from api.models import ActivityCreate, ActivityResponse
from auth.dependencies import get_current_user
from auth.models import User

router = APIRouter()


@router.post("/activity", response_model=ActivityResponse, status_code=201)
def create_activity(
    request: Request,
    body: ActivityCreate,
    current_user: User = Depends(get_current_user),
) -> ActivityResponse:
    """Append one entry to the caller's log."""
    store: ActivityStore = request.app.state.activity_store
    entry = activity_service.create(
        store,
        current_user.id,
        body.action,
        metadata=body.metadata,
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return ActivityResponse.from_entry(entry)


@router.get("/activity", response_model=list[ActivityResponse])
def list_activity(
    request: Request,
    response: Response,
    limit: int = Query(default=activity_service.DEFAULT_PAGE_SIZE, ge=1, le=activity_service.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    current_user: User = Depends(get_current_user),
) -> list[ActivityResponse]:
    """Return one page of the caller's entries, most recent first."""
    store: ActivityStore = request.app.state.activity_store
    entries = activity_service.list_mine(store, current_user.id, limit=limit, offset=offset)
    response.headers["X-Total-Count"] = str(activity_service.count_mine(store, current_user.id))
    return [ActivityResponse.from_entry(e) for e in entries]

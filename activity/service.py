"""
activity/service.py -- Append and read the per-user activity log.

Both operations translate SQLAlchemy failures into StorageError so route
handlers and the auth service only ever see the core/errors.py taxonomy.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from activity.models import ActivityEntry
from activity.store import ActivityStore
from core.errors import StorageError, ValidationError

logger = logging.getLogger("irrigation.activity")

MAX_ACTION_LENGTH = 100
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


def create(
    store: ActivityStore,
    user_id: int,
    action: str | None,
    metadata: Mapping[str, Any] | None = None,
    ip: str | None = None,
    user_agent: str | None = None,
) -> ActivityEntry:
    """Append one entry for user_id and return it as stored.

    Raises ValidationError for a blank or over-long action or non-mapping
    metadata, StorageError if the write fails.
    """
    action = (action or "").strip()
    if not action:
        raise ValidationError("Action is required")
    if len(action) > MAX_ACTION_LENGTH:
        raise ValidationError(f"Action must be at most {MAX_ACTION_LENGTH} characters")
    if metadata is not None and not isinstance(metadata, Mapping):
        raise ValidationError("Metadata must be an object")

    entry = ActivityEntry(
        user_id=user_id,
        action=action,
        metadata=dict(metadata or {}),
        ip=ip,
        user_agent=user_agent,
    )
    try:
        return store.append(entry)
    except SQLAlchemyError as exc:
        logger.error("Activity write failed for user %s (%s): %s", user_id, action, exc)
        raise StorageError("Activity log unavailable") from exc


def list_mine(
    store: ActivityStore,
    user_id: int,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> list[ActivityEntry]:
    """Return the caller's entries, most recent first.

    limit is clamped to 1..MAX_PAGE_SIZE and offset to >= 0 so a CLI or test
    caller cannot request an unbounded page.
    """
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    offset = max(0, offset)
    try:
        return store.list_for_user(user_id, limit=limit, offset=offset)
    except SQLAlchemyError as exc:
        logger.error("Activity read failed for user %s: %s", user_id, exc)
        raise StorageError("Activity log unavailable") from exc


def count_mine(store: ActivityStore, user_id: int) -> int:
    """Total number of entries owned by user_id."""
    try:
        return store.count_for_user(user_id)
    except SQLAlchemyError as exc:
        logger.error("Activity count failed for user %s: %s", user_id, exc)
        raise StorageError("Activity log unavailable") from exc

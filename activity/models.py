"""
activity/models.py -- Domain dataclass for the activity log.

Pure data container; activity/store.py and activity/service.py do the work.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ActivityEntry:
    """One append-only audit record of something a user did.

    action is a free-form label ("register", "login", "valve_opened", ...).
    Entries are never updated or deleted -- only inserted.

    id is None before the record is written to the database.
    """

    user_id: int
    action: str
    metadata: dict[str, Any] = field(default_factory=dict)
    ip: str | None = None
    user_agent: str | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    id: int | None = None

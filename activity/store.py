"""
activity/store.py -- SQLAlchemy Core persistence for the activity log.

Pattern: Repository + Data Mapper, same as auth/store.py. The table is
append-only: ActivityStore exposes insert and read, nothing else.

Ordering: list_for_user() returns newest first (created_at DESC, id DESC).
The id tiebreak keeps order stable for entries written within the same
timestamp resolution.

Security: all queries use bound parameters. No f-strings in SQL.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine

from activity.models import ActivityEntry

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_activity = Table(
    "activity_logs",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False),
    Column("action", String(100), nullable=False),
    Column("metadata_json", Text),  # JSON object serialized as text
    Column("ip", String(45)),
    Column("user_agent", Text),
    Column("created_at", String(32), nullable=False),
    Index("ix_activity_user_created", "user_id", "created_at"),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ActivityStore:
    """Repository for ActivityEntry records.

    Usage:
        store = ActivityStore("sqlite:///irrigation.db")
        store.append(ActivityEntry(user_id=1, action="login", ip="10.0.0.5"))
        entries = store.list_for_user(1, limit=20)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def append(self, entry: ActivityEntry) -> ActivityEntry:
        """Insert an entry and return it with id and created_at filled in."""
        created_at = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _activity.insert().values(
                    user_id=entry.user_id,
                    action=entry.action,
                    metadata_json=json.dumps(entry.metadata) if entry.metadata else None,
                    ip=entry.ip,
                    user_agent=entry.user_agent,
                    created_at=created_at,
                )
            )
            conn.commit()
            new_id = result.inserted_primary_key[0]
        return ActivityEntry(
            id=new_id,
            user_id=entry.user_id,
            action=entry.action,
            metadata=dict(entry.metadata),
            ip=entry.ip,
            user_agent=entry.user_agent,
            created_at=created_at,
        )

    def list_for_user(self, user_id: int, limit: int = 50, offset: int = 0) -> list[ActivityEntry]:
        """Return one page of a user's entries, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _activity.select()
                .where(_activity.c.user_id == user_id)
                .order_by(_activity.c.created_at.desc(), _activity.c.id.desc())
                .limit(limit)
                .offset(offset)
            ).fetchall()
        return [_row_to_entry(r) for r in rows]

    def count_for_user(self, user_id: int) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                select(func.count()).select_from(_activity).where(_activity.c.user_id == user_id)
            ).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_entry(row) -> ActivityEntry:
    return ActivityEntry(
        id=row.id,
        user_id=row.user_id,
        action=row.action,
        metadata=json.loads(row.metadata_json) if row.metadata_json else {},
        ip=row.ip,
        user_agent=row.user_agent,
        created_at=row.created_at,
    )

# This project was developed with assistance from AI tools.
"""Activity log service.

Writes append-only activity entries with a SHA-256 hash chain for tamper
evidence and a PostgreSQL advisory lock for serial hash computation. Every
successful state transition writes exactly one entry in the same
transaction as the change it records; failures write nothing.
"""

import hashlib
import json
import logging

from db import ActivityLog
from db.enums import ActivityType
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext

logger = logging.getLogger(__name__)

# Fixed advisory lock key for activity trail serialization.
ACTIVITY_LOCK_KEY = 910_001

TIMELINE_LIMIT = 100


def _compute_hash(entry_id: int, created_at: str, details: dict | None) -> str:
    """Compute SHA-256 hash of an activity entry's key fields."""
    payload = f"{entry_id}|{created_at}|{json.dumps(details, sort_keys=True, default=str)}"
    return hashlib.sha256(payload.encode()).hexdigest()


async def write_activity(
    session: AsyncSession,
    *,
    activity_type: ActivityType,
    description: str,
    user: UserContext,
    submission_id: int,
    quote_id: int | None = None,
    details: dict | None = None,
) -> ActivityLog:
    """Append one activity entry with hash chain linkage.

    Flushes but does not commit; the caller commits together with the state
    change the entry describes.
    """
    await session.execute(text(f"SELECT pg_advisory_xact_lock({ACTIVITY_LOCK_KEY})"))

    latest_stmt = select(ActivityLog).order_by(ActivityLog.id.desc()).limit(1)
    result = await session.execute(latest_stmt)
    prev_entry = result.scalar_one_or_none()

    if prev_entry is not None:
        prev_hash = _compute_hash(prev_entry.id, str(prev_entry.created_at), prev_entry.details)
    else:
        prev_hash = "genesis"

    entry = ActivityLog(
        activity_type=ActivityType(activity_type).value,
        description=description,
        details=details,
        performed_by_id=user.user_id,
        performed_by_name=user.name,
        performed_by_role=user.role.value,
        submission_id=submission_id,
        quote_id=quote_id,
        prev_hash=prev_hash,
    )
    session.add(entry)
    await session.flush()
    logger.info(
        "Activity %s recorded for submission %s (quote %s)",
        entry.activity_type,
        submission_id,
        quote_id,
    )
    return entry


async def list_activity(
    session: AsyncSession,
    submission_id: int,
    *,
    limit: int = TIMELINE_LIMIT,
) -> list[ActivityLog]:
    """Timeline for a submission, newest first."""
    stmt = (
        select(ActivityLog)
        .where(ActivityLog.submission_id == submission_id)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def verify_activity_chain(session: AsyncSession) -> dict:
    """Verify the integrity of the activity hash chain.

    Returns:
        {"status": "OK", "entries_checked": N} on success, or
        {"status": "TAMPERED", "first_break_id": id, "entries_checked": N}
        if a mismatch is found.
    """
    stmt = select(ActivityLog).order_by(ActivityLog.id.asc())
    result = await session.execute(stmt)
    entries = list(result.scalars().all())

    if not entries:
        return {"status": "OK", "entries_checked": 0}

    for i, entry in enumerate(entries):
        if i == 0:
            expected = "genesis"
        else:
            prev = entries[i - 1]
            expected = _compute_hash(prev.id, str(prev.created_at), prev.details)

        if entry.prev_hash != expected:
            return {
                "status": "TAMPERED",
                "first_break_id": entry.id,
                "entries_checked": i + 1,
            }

    return {"status": "OK", "entries_checked": len(entries)}


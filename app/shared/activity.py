"""Activity log helper."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from models import ActivityLog, ActivityType


def record_activity(
    db: AsyncSession,
    project_id: UUID,
    activity_type: ActivityType,
    entity_type: str,
    entity_id: UUID,
    description: str,
) -> ActivityLog:
    """Add an activity row to the caller's unit of work; the caller commits."""
    entry = ActivityLog(
        project_id=project_id,
        type=activity_type,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
    )
    db.add(entry)
    return entry

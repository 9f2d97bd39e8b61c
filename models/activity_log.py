"""
Activity log model recording notable project events.
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, String, Text

from .base import UUID, BaseModel


class ActivityType(str, enum.Enum):
    DECISION_CREATED = "decision_created"
    TASK_STATUS_CHANGED = "task_status_changed"
    DOCUMENT_EDITED = "document_edited"
    CONVERSATION_ARCHIVED = "conversation_archived"


class ActivityLog(BaseModel):
    __tablename__ = "activity_logs"

    project_id = Column(UUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    type = Column(
        Enum(ActivityType, name="activity_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    entity_type = Column(String(50), nullable=False)  # decision, task, document, conversation
    entity_id = Column(UUID(), nullable=False)
    description = Column(Text, nullable=False)

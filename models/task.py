"""
Task model for actionable project work items.
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class TaskStatus(str, enum.Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    DONE = "done"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(BaseModel):
    __tablename__ = "tasks"

    project_id = Column(UUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    conversation_id = Column(UUID(), ForeignKey("conversations.id", ondelete="SET NULL"))

    title = Column(String(500), nullable=False)
    description = Column(Text)
    next_action = Column(Text)
    status = Column(
        Enum(TaskStatus, name="task_status", values_callable=lambda e: [m.value for m in e]),
        default=TaskStatus.TODO,
        nullable=False,
    )
    blocked_reason = Column(Text)
    priority = Column(
        Enum(Priority, name="priority_level", values_callable=lambda e: [m.value for m in e]),
        default=Priority.MEDIUM,
        nullable=False,
    )

    # Relationships
    project = relationship("Project", back_populates="tasks")

"""
Models package initialization.
"""

from .activity_log import ActivityLog, ActivityType
from .base import Base, BaseModel
from .conversation import AIMode, Conversation
from .decision import Decision, DecisionStatus, Impact
from .document import Document
from .message import Message, MessageRole
from .project import Project
from .task import Priority, Task, TaskStatus

__all__ = [
    "Base",
    "BaseModel",
    "Project",
    # Conversation models
    "AIMode",
    "Conversation",
    "Message",
    "MessageRole",
    # Project knowledge
    "Task",
    "TaskStatus",
    "Priority",
    "Decision",
    "DecisionStatus",
    "Impact",
    "Document",
    # Activity
    "ActivityLog",
    "ActivityType",
]

"""
Conversation model for AI assistant conversations.
"""

import enum

from sqlalchemy import Boolean, Column, Enum, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class AIMode(str, enum.Enum):
    """Operating persona of a conversation."""

    DESIGN = "design"
    DEBUG = "debug"
    PLANNING = "planning"
    IMPLEMENTATION = "implementation"
    REVIEW = "review"


class Conversation(BaseModel):
    """
    Represents a chat conversation entity in the application.

    A conversation starts active. Archiving stores a summary (and optionally a new
    purpose) and flips ``is_archived``; unarchiving only flips the flag back, so
    the summary outlives the archive.
    """

    __tablename__ = "conversations"

    project_id = Column(UUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    purpose = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)  # Set when the conversation is archived
    mode = Column(
        Enum(AIMode, name="ai_mode", values_callable=lambda e: [m.value for m in e]),
        default=AIMode.DESIGN,
        nullable=False,
    )
    is_archived = Column(Boolean, default=False, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="conversations")
    messages = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )

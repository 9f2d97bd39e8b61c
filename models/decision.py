"""
Decision model for recorded project decisions.
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class DecisionStatus(str, enum.Enum):
    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    DEPRECATED = "deprecated"


class Impact(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Decision(BaseModel):
    """
    Represents a decision made or proposed within a project.
    """

    __tablename__ = "decisions"

    project_id = Column(UUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    conversation_id = Column(UUID(), ForeignKey("conversations.id", ondelete="SET NULL"))
    supersedes_decision_id = Column(UUID(), ForeignKey("decisions.id", ondelete="SET NULL"))

    title = Column(String(500), nullable=False)
    decision = Column(Text, nullable=False)
    rationale = Column(Text)
    status = Column(
        Enum(DecisionStatus, name="decision_status", values_callable=lambda e: [m.value for m in e]),
        default=DecisionStatus.PROPOSED,
        nullable=False,
    )
    impact = Column(
        Enum(Impact, name="impact_level", values_callable=lambda e: [m.value for m in e]),
        default=Impact.MEDIUM,
        nullable=False,
    )

    # Relationships
    project = relationship("Project", back_populates="decisions")

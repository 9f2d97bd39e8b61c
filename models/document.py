"""
Document model for project documentation.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class Document(BaseModel):
    """
    Represents a markdown document attached to a project.

    Only pinned documents are eligible for AI context.
    """

    __tablename__ = "documents"

    project_id = Column(UUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=False, default="")
    is_pinned = Column(Boolean, default=False, nullable=False)
    version = Column(Integer, default=1, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="documents")

"""Conversation and message schemas for request/response serialization."""

from __future__ import annotations

from uuid import UUID

from pydantic import ConfigDict, Field

from models import AIMode, MessageRole

from .base import BaseModelSchema, BaseSchema


class MessageResponse(BaseModelSchema):
    """Schema for a stored conversation message."""

    conversation_id: UUID
    role: MessageRole
    content: str

    model_config = ConfigDict(from_attributes=True)


class MessagePageResponse(BaseSchema):
    """One page of messages in chronological order."""

    messages: list[MessageResponse] = Field(default=[])
    oldest_cursor: str | None = Field(
        None, description="ISO timestamp to pass as cursor for the next-older page"
    )
    has_more: bool = False


class ConversationCreate(BaseSchema):
    """Schema for creating a new conversation."""

    title: str = Field(..., min_length=1, max_length=255, description="Conversation title")
    purpose: str | None = Field(None, description="What the conversation is meant to achieve")
    mode: AIMode = Field(default=AIMode.DESIGN, description="Initial AI mode")


class ConversationModeUpdate(BaseSchema):
    mode: AIMode


class ArchiveRequest(BaseSchema):
    """Schema for archiving a conversation."""

    summary: str = Field(..., description="Summary that replaces the raw history in AI context")
    purpose: str | None = Field(None, description="Optional updated purpose")


class HealthReportResponse(BaseSchema):
    """Advisory health classification of a conversation."""

    message_count: int
    level: str
    label: str
    description: str
    progress: float = Field(..., ge=0, le=100)
    recommendations: list[str] = Field(default=[])
    show_archive_action: bool = False


class ConversationResponse(BaseModelSchema):
    """Schema for conversation response."""

    project_id: UUID
    title: str
    purpose: str | None = None
    summary: str | None = None
    mode: AIMode
    is_archived: bool
    message_count: int = Field(default=0, description="Number of messages in conversation")

    model_config = ConfigDict(from_attributes=True)


class ConversationListItem(ConversationResponse):
    health: str


class ConversationListResponse(BaseSchema):
    conversations: list[ConversationListItem]
    total: int


class ConversationDetailResponse(BaseSchema):
    """An opened conversation: metadata, health and (when loaded) its newest message page."""

    conversation: ConversationResponse
    health: HealthReportResponse
    include_recent_messages_default: bool
    messages_loaded: bool
    page: MessagePageResponse | None = None


class SendMessageRequest(BaseSchema):
    content: str = Field(..., max_length=10000, description="User message")
    include_recent_messages: bool | None = Field(
        None, description="Override the default recent-message inclusion"
    )

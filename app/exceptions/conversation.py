# ruff: noqa: D107
"""Conversation and chat exceptions."""

from typing import Any

from .base import BaseAppException, ConflictError, ValidationError


class ConversationNotFoundError(BaseAppException):
    """Exception raised when a conversation is not found."""

    def __init__(self, conversation_id: str | None = None):
        message = (
            f"Conversation with ID {conversation_id} not found"
            if conversation_id
            else "Conversation not found"
        )
        super().__init__(message=message, status_code=404, error_code="CONVERSATION_NOT_FOUND")


class ProjectNotFoundError(BaseAppException):
    """Exception raised when a project is not found."""

    def __init__(self, project_id: str | None = None):
        message = f"Project with ID {project_id} not found" if project_id else "Project not found"
        super().__init__(message=message, status_code=404, error_code="PROJECT_NOT_FOUND")


class SummaryTooShortError(ValidationError):
    """Exception raised when an archive summary is below the minimum length."""

    def __init__(self, minimum: int = 20, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Summary must be at least {minimum} characters",
            details=details,
            error_code="SUMMARY_TOO_SHORT",
        )


class EmptyMessageError(ValidationError):
    """Exception raised when a chat message has no content."""

    def __init__(self, message: str = "Message content cannot be empty"):
        super().__init__(message=message, error_code="EMPTY_MESSAGE")


class ConversationArchivedError(ConflictError):
    """Exception raised when writing to an archived conversation."""

    def __init__(self, message: str = "Conversation is archived. Unarchive it to continue."):
        super().__init__(message=message, error_code="CONVERSATION_ARCHIVED")


class SendInProgressError(ConflictError):
    """Exception raised when a send is already in flight for a conversation."""

    def __init__(self, message: str = "A message is already being sent in this conversation"):
        super().__init__(message=message, error_code="SEND_IN_PROGRESS")


class InvalidConversationTransitionError(ConflictError):
    """Exception raised for archive/unarchive requests that do not match the current state."""

    def __init__(self, message: str = "Invalid conversation state transition"):
        super().__init__(message=message, error_code="INVALID_CONVERSATION_TRANSITION")


class ReplyNotSavedError(BaseAppException):
    """Exception raised when a completed assistant reply could not be stored."""

    def __init__(self, message: str = "The reply could not be saved. Please try again."):
        super().__init__(message=message, status_code=500, error_code="REPLY_NOT_SAVED")

# ruff: noqa: D107
"""AI service exceptions."""

from typing import Any

from .base import BaseAppException


class AIServiceError(BaseAppException):
    """Base exception for AI service errors."""

    def __init__(
        self,
        message: str = "AI service error occurred",
        error_code: str = "AI_SERVICE_ERROR",
        details: dict[str, Any] | None = None,
        status_code: int = 502,
    ):
        super().__init__(
            message=message, status_code=status_code, error_code=error_code, details=details
        )


class AIServiceUnavailableError(AIServiceError):
    """Exception raised when AI service is unavailable."""

    def __init__(
        self,
        message: str = "AI service is temporarily unavailable",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AI_SERVICE_UNAVAILABLE", details, status_code=503)


class AIQuotaExceededError(AIServiceError):
    """Exception raised when AI credits are depleted."""

    def __init__(
        self,
        message: str = "AI credits depleted. Please add credits to continue.",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AI_QUOTA_EXCEEDED", details, status_code=402)


class AITimeoutError(AIServiceError):
    """Exception raised when AI service request times out."""

    def __init__(
        self,
        message: str = "AI service request timed out",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AI_TIMEOUT", details, status_code=504)


class AIParsingError(AIServiceError):
    """Exception raised when AI response cannot be parsed."""

    def __init__(
        self,
        message: str = "Failed to parse AI service response",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AI_PARSING_ERROR", details)


class AIConfigurationError(AIServiceError):
    """Exception raised when AI service is not properly configured."""

    def __init__(
        self,
        message: str = "AI service is not properly configured",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AI_CONFIGURATION_ERROR", details, status_code=503)


class AIRateLimitError(AIServiceError):
    """Exception raised when AI service rate limit is hit."""

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        retry_after: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        if details is None:
            details = {}
        if retry_after:
            details["retry_after"] = retry_after
        super().__init__(message, "AI_RATE_LIMITED", details, status_code=429)


class StreamProtocolError(AIServiceError):
    """Exception raised when a streamed reply contains a frame that cannot be decoded."""

    def __init__(
        self,
        message: str = "Malformed frame in AI response stream",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AI_STREAM_PROTOCOL_ERROR", details)


# Map upstream HTTP statuses to exceptions
AI_STATUS_MAPPING = {
    402: AIQuotaExceededError,
    429: AIRateLimitError,
    503: AIServiceUnavailableError,
    504: AITimeoutError,
}


def map_ai_status(
    status_code: int, message: str | None = None, details: dict[str, Any] | None = None
) -> AIServiceError:
    """Map an upstream HTTP status to the appropriate exception."""
    exception_class = AI_STATUS_MAPPING.get(status_code)
    if exception_class is None:
        return AIServiceError(message or "AI service error occurred", details=details)
    if message:
        return exception_class(message, details=details)
    return exception_class(details=details)

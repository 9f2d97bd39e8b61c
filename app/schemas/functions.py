"""Wire schemas of the backend chat and extraction functions."""

from typing import Any

from pydantic import Field

from .context import ContextSchema, StructuredContext
from .extraction import ExtractionKind


class ChatFunctionRequest(ContextSchema):
    """``{userMessage, context}`` body of the chat function."""

    user_message: str = Field(..., min_length=1)
    context: StructuredContext = Field(default_factory=StructuredContext)


class ExtractFunctionRequest(ContextSchema):
    """``{content, extractionType}`` body of the extraction function."""

    content: str = Field(..., min_length=1)
    extraction_type: ExtractionKind


class ExtractFunctionResponse(ContextSchema):
    type: ExtractionKind
    data: dict[str, Any]


class FunctionErrorResponse(ContextSchema):
    error: str

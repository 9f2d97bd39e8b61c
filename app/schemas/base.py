"""Base schemas: ORM-backed responses and the success/error envelopes."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema class with common configuration."""
    model_config = ConfigDict(from_attributes=True)


class BaseModelSchema(BaseSchema):
    """Base schema for rows with an id and timestamps."""
    id: UUID
    created_at: datetime
    updated_at: datetime


class ResponseSchema(BaseSchema):
    """Success envelope for mutations."""
    status: str
    message: Optional[str] = None
    data: Optional[dict] = None


class ErrorResponseSchema(BaseSchema):
    """Error envelope returned by the global exception handlers."""
    status: str = "error"
    message: str
    error_code: str
    details: Any = None
    timestamp: datetime
    request_id: Optional[str] = None

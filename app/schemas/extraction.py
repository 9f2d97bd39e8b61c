"""Extraction schemas: structured payloads returned by the extraction function."""

from enum import Enum
from uuid import UUID

from pydantic import Field

from models import Impact, Priority

from .base import BaseSchema


class ExtractionKind(str, Enum):
    TASK = "task"
    DECISION = "decision"
    DOCUMENT = "document"
    AUTO = "auto"


class ExtractedTask(BaseSchema):
    title: str = Field(..., min_length=1)
    description: str | None = None
    next_action: str | None = None
    priority: Priority = Priority.MEDIUM


class ExtractedDecision(BaseSchema):
    title: str = Field(..., min_length=1)
    decision: str = Field(..., min_length=1)
    rationale: str | None = None
    impact: Impact = Impact.MEDIUM


class ExtractedDocument(BaseSchema):
    title: str = Field(..., min_length=1)
    content: str
    is_pinned: bool = False


class ExtractedItems(BaseSchema):
    """Aggregate payload for ``auto`` extraction."""

    tasks: list[ExtractedTask] = Field(default=[])
    decisions: list[ExtractedDecision] = Field(default=[])
    documents: list[ExtractedDocument] = Field(default=[])


ExtractedPayload = ExtractedTask | ExtractedDecision | ExtractedDocument | ExtractedItems

PAYLOAD_SCHEMAS: dict[ExtractionKind, type[BaseSchema]] = {
    ExtractionKind.TASK: ExtractedTask,
    ExtractionKind.DECISION: ExtractedDecision,
    ExtractionKind.DOCUMENT: ExtractedDocument,
    ExtractionKind.AUTO: ExtractedItems,
}


class ExtractRequest(BaseSchema):
    """Schema for extracting items from message content."""

    content: str = Field(..., min_length=1, description="Message content to extract from")
    kind: ExtractionKind = Field(default=ExtractionKind.AUTO, description="What to extract")


class ExtractionCounts(BaseSchema):
    tasks: int = 0
    decisions: int = 0
    documents: int = 0


class ExtractionResultResponse(BaseSchema):
    """Outcome of an extraction: created counts, entity ids and a summary line."""

    kind: ExtractionKind
    created: ExtractionCounts
    failed: ExtractionCounts
    task_ids: list[UUID] = Field(default=[])
    decision_ids: list[UUID] = Field(default=[])
    document_ids: list[UUID] = Field(default=[])
    summary: str

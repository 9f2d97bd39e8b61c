"""Structured context schemas.

These models are the wire shape of the per-turn AI context, so they serialize
with camelCase keys. Optional item fields that are empty are left out when
dumped with ``exclude_none``.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ContextSchema(BaseModel):
    """Base schema for context payloads (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContextDocument(ContextSchema):
    title: str
    content: str


class ContextDecision(ContextSchema):
    title: str
    decision: str
    impact: str
    rationale: str | None = None


class ContextTask(ContextSchema):
    title: str
    status: str
    priority: str
    description: str | None = None
    next_action: str | None = Field(default=None, alias="next_action")
    blocked_reason: str | None = Field(default=None, alias="blocked_reason")


class ContextMessage(ContextSchema):
    role: str
    content: str


class StructuredContext(ContextSchema):
    """Filtered, size-bounded project knowledge sent with one chat turn."""

    pinned_documents: list[ContextDocument] = Field(default_factory=list)
    accepted_decisions: list[ContextDecision] = Field(default_factory=list)
    active_tasks: list[ContextTask] = Field(default_factory=list)
    blocked_tasks: list[ContextTask] = Field(default_factory=list)
    conversation_summary: str | None = None
    conversation_purpose: str | None = None
    recent_messages: list[ContextMessage] = Field(default_factory=list)
    include_recent_messages: bool = False
    mode: str = "design"

    def to_wire(self) -> dict:
        """Dump with camelCase keys, omitting empty optional item fields."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        data.setdefault("conversationSummary", None)
        data.setdefault("conversationPurpose", None)
        return data

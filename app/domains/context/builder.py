"""Context builder: selects which project knowledge goes into an AI turn.

Everything in this module is pure. The per-mode policy lives in
``MODE_SELECTIONS`` as data so it can be read and tested on its own.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from app.schemas.context import (
    ContextDecision,
    ContextDocument,
    ContextMessage,
    ContextTask,
    StructuredContext,
)
from models import AIMode, DecisionStatus, TaskStatus

MAX_RECENT_MESSAGES = 10
DOCUMENT_CONTENT_LIMIT = 1000
TRUNCATION_MARKER = "..."


@dataclass(frozen=True)
class ContextSelection:
    """Which knowledge sets a mode sends to the model."""

    pinned_documents: bool
    decisions: bool
    active_tasks: bool
    blocked_tasks: bool
    force_recent_messages: bool


MODE_SELECTIONS: dict[AIMode, ContextSelection] = {
    AIMode.DESIGN: ContextSelection(
        pinned_documents=True,
        decisions=True,
        active_tasks=False,
        blocked_tasks=False,
        force_recent_messages=False,
    ),
    AIMode.DEBUG: ContextSelection(
        pinned_documents=False,
        decisions=False,
        active_tasks=True,
        blocked_tasks=True,
        force_recent_messages=True,
    ),
    AIMode.PLANNING: ContextSelection(
        pinned_documents=False,
        decisions=True,
        active_tasks=True,
        blocked_tasks=False,
        force_recent_messages=False,
    ),
    AIMode.IMPLEMENTATION: ContextSelection(
        pinned_documents=True,
        decisions=False,
        active_tasks=True,
        blocked_tasks=False,
        force_recent_messages=False,
    ),
    AIMode.REVIEW: ContextSelection(
        pinned_documents=True,
        decisions=True,
        active_tasks=False,
        blocked_tasks=False,
        force_recent_messages=False,
    ),
}

# Used for a mode value outside AIMode (e.g. a row written by a newer client)
FALLBACK_SELECTION = ContextSelection(
    pinned_documents=True,
    decisions=True,
    active_tasks=True,
    blocked_tasks=False,
    force_recent_messages=False,
)


def resolve_mode(conversation: Any | None) -> str:
    """Mode of the conversation as a string, ``design`` when there is none."""
    mode = getattr(conversation, "mode", None) if conversation is not None else None
    if mode is None or mode == "":
        return AIMode.DESIGN.value
    return mode.value if isinstance(mode, AIMode) else str(mode)


def selection_for(mode: str) -> ContextSelection:
    try:
        return MODE_SELECTIONS[AIMode(mode)]
    except ValueError:
        return FALLBACK_SELECTION


def trim_document(content: str, limit: int = DOCUMENT_CONTENT_LIMIT) -> str:
    """Cut content to ``limit`` characters, marking the cut with an ellipsis."""
    content = content or ""
    if len(content) <= limit:
        return content
    return content[:limit] + TRUNCATION_MARKER


def default_include_recent_messages(conversation: Any | None) -> bool:
    """Recent messages default on until the conversation has a summary."""
    if conversation is None:
        return True
    return not getattr(conversation, "summary", None)


def build_context(
    conversation: Any | None,
    tasks: Sequence[Any],
    decisions: Sequence[Any],
    documents: Sequence[Any],
    messages: Sequence[Any],
    include_recent_messages: bool,
) -> StructuredContext:
    """
    Assemble the structured context for one chat turn.

    Args:
        conversation: Conversation being chatted in, or None
        tasks: All project tasks; only in-progress and blocked ones can be selected
        decisions: All project decisions; only accepted ones can be selected
        documents: All project documents; only pinned ones can be selected
        messages: Messages already loaded for the conversation, oldest first
        include_recent_messages: Caller preference, overridden by modes that force history

    Returns:
        StructuredContext for the conversation's mode
    """
    mode = resolve_mode(conversation)
    selection = selection_for(mode)

    pinned_documents = [d for d in documents if d.is_pinned]
    accepted_decisions = [d for d in decisions if _value(d.status) == DecisionStatus.ACCEPTED.value]
    in_progress_tasks = [t for t in tasks if _value(t.status) == TaskStatus.IN_PROGRESS.value]
    blocked_tasks = [t for t in tasks if _value(t.status) == TaskStatus.BLOCKED.value]

    include_messages = selection.force_recent_messages or include_recent_messages
    recent = list(messages)[-MAX_RECENT_MESSAGES:] if include_messages else []

    return StructuredContext(
        mode=mode,
        pinned_documents=(
            [
                ContextDocument(title=d.title, content=trim_document(d.content))
                for d in pinned_documents
            ]
            if selection.pinned_documents
            else []
        ),
        accepted_decisions=(
            [
                ContextDecision(
                    title=d.title,
                    decision=d.decision,
                    impact=_value(d.impact),
                    rationale=d.rationale or None,
                )
                for d in accepted_decisions
            ]
            if selection.decisions
            else []
        ),
        active_tasks=(
            [
                ContextTask(
                    title=t.title,
                    status=_value(t.status),
                    priority=_value(t.priority),
                    description=t.description or None,
                    next_action=t.next_action or None,
                )
                for t in in_progress_tasks
            ]
            if selection.active_tasks
            else []
        ),
        blocked_tasks=(
            [
                ContextTask(
                    title=t.title,
                    status=_value(t.status),
                    priority=_value(t.priority),
                    blocked_reason=t.blocked_reason or None,
                )
                for t in blocked_tasks
            ]
            if selection.blocked_tasks
            else []
        ),
        conversation_summary=getattr(conversation, "summary", None) or None,
        conversation_purpose=getattr(conversation, "purpose", None) or None,
        recent_messages=[ContextMessage(role=_value(m.role), content=m.content) for m in recent],
        include_recent_messages=include_messages,
    )


def _value(enum_or_str: Any) -> str:
    return enum_or_str.value if hasattr(enum_or_str, "value") else str(enum_or_str)

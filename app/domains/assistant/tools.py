"""Function declarations the extraction function forces the model to call."""

from app.schemas.extraction import ExtractionKind

_LEVELS = ["low", "medium", "high"]

_TASK_PROPERTIES = {
    "title": {"type": "STRING", "description": "Short, actionable task title"},
    "description": {
        "type": "STRING",
        "description": "Detailed description of what needs to be done",
    },
    "next_action": {"type": "STRING", "description": "The immediate next step to take"},
    "priority": {"type": "STRING", "enum": _LEVELS, "description": "Task priority level"},
}

_DECISION_PROPERTIES = {
    "title": {"type": "STRING", "description": "Short title summarizing the decision"},
    "decision": {"type": "STRING", "description": "The actual decision that was made"},
    "rationale": {"type": "STRING", "description": "Why this decision was made"},
    "impact": {"type": "STRING", "enum": _LEVELS, "description": "Impact level of this decision"},
}

_DOCUMENT_PROPERTIES = {
    "title": {"type": "STRING", "description": "Document title"},
    "content": {"type": "STRING", "description": "The document content in markdown format"},
    "is_pinned": {"type": "BOOLEAN", "description": "Whether this is important enough to pin"},
}

_TASK_REQUIRED = ["title", "priority"]
_DECISION_REQUIRED = ["title", "decision", "impact"]
_DOCUMENT_REQUIRED = ["title", "content"]

EXTRACTION_TOOLS: dict[ExtractionKind, dict] = {
    ExtractionKind.TASK: {
        "name": "create_task",
        "description": "Extract a task from the conversation content",
        "parameters": {
            "type": "OBJECT",
            "properties": _TASK_PROPERTIES,
            "required": _TASK_REQUIRED,
        },
    },
    ExtractionKind.DECISION: {
        "name": "create_decision",
        "description": "Extract a decision from the conversation content",
        "parameters": {
            "type": "OBJECT",
            "properties": _DECISION_PROPERTIES,
            "required": _DECISION_REQUIRED,
        },
    },
    ExtractionKind.DOCUMENT: {
        "name": "create_document",
        "description": "Extract content suitable for a document",
        "parameters": {
            "type": "OBJECT",
            "properties": _DOCUMENT_PROPERTIES,
            "required": _DOCUMENT_REQUIRED,
        },
    },
    ExtractionKind.AUTO: {
        "name": "extract_items",
        "description": "Analyze content and extract any tasks, decisions, or documents",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "tasks": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": _TASK_PROPERTIES,
                        "required": _TASK_REQUIRED,
                    },
                },
                "decisions": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": _DECISION_PROPERTIES,
                        "required": _DECISION_REQUIRED,
                    },
                },
                "documents": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": _DOCUMENT_PROPERTIES,
                        "required": _DOCUMENT_REQUIRED,
                    },
                },
            },
            "required": ["tasks", "decisions", "documents"],
        },
    },
}


def tool_name(kind: ExtractionKind) -> str:
    return EXTRACTION_TOOLS[kind]["name"]

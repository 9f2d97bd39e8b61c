"""Prompt text for the chat and extraction functions."""

from app.schemas.context import StructuredContext
from app.schemas.extraction import ExtractionKind
from models import AIMode

BASE_PERSONA = (
    "You are a helpful AI assistant for a project management and development tool. "
    "You have access to the project's tasks, decisions, and documents to provide "
    "contextual assistance."
)

MODE_FOCUS: dict[AIMode, tuple[str, list[str]]] = {
    AIMode.DESIGN: (
        "DESIGN",
        [
            "Helping with UI/UX design decisions",
            "Suggesting visual improvements and user experience enhancements",
            "Discussing color schemes, layouts, and component design",
            "Reviewing design patterns and best practices",
            "Creating wireframes or design specifications in text form",
        ],
    ),
    AIMode.DEBUG: (
        "DEBUG",
        [
            "Analyzing error messages and stack traces",
            "Identifying potential bugs and issues",
            "Suggesting debugging strategies and approaches",
            "Explaining error causes and solutions",
            "Helping trace issues through code logic",
        ],
    ),
    AIMode.PLANNING: (
        "PLANNING",
        [
            "Breaking down features into actionable tasks",
            "Estimating effort and complexity",
            "Identifying dependencies and blockers",
            "Suggesting project structure and organization",
            "Creating roadmaps and milestones",
        ],
    ),
    AIMode.IMPLEMENTATION: (
        "IMPLEMENTATION",
        [
            "Writing clean, maintainable code",
            "Suggesting implementation approaches",
            "Reviewing code patterns and best practices",
            "Helping with specific coding challenges",
            "Providing code examples and snippets",
        ],
    ),
    AIMode.REVIEW: (
        "REVIEW",
        [
            "Reviewing decisions and their rationale",
            "Analyzing completed work",
            "Suggesting improvements and optimizations",
            "Identifying potential issues or risks",
            "Documenting lessons learned",
        ],
    ),
}

CONTEXT_HEADING = "\n\n---\n# Project Context\n\n"

EXTRACTION_PROMPTS: dict[ExtractionKind, str] = {
    ExtractionKind.TASK: (
        "You are an expert at extracting actionable tasks from conversations.\n"
        "Analyze the content and extract a clear, actionable task.\n"
        "Focus on what needs to be done, by when, and its priority.\n"
        "If the content doesn't contain a clear task, extract the most actionable item you can find."
    ),
    ExtractionKind.DECISION: (
        "You are an expert at identifying decisions from conversations.\n"
        "Analyze the content and extract any decision that was made or proposed.\n"
        "Include the reasoning behind the decision and assess its impact level.\n"
        "If multiple decisions exist, extract the most significant one."
    ),
    ExtractionKind.DOCUMENT: (
        "You are an expert at creating documentation from conversations.\n"
        "Analyze the content and create a well-structured document.\n"
        "Format the content in clean markdown with appropriate headers and sections.\n"
        "Preserve important details while organizing them logically."
    ),
    ExtractionKind.AUTO: (
        "You are an expert at analyzing conversations and extracting structured information.\n"
        "Analyze the content and identify:\n"
        "- Tasks: Actionable items that need to be done\n"
        "- Decisions: Choices or determinations that were made\n"
        "- Documents: Information worth preserving as documentation\n\n"
        "Extract all relevant items. If a category has no items, return an empty array.\n"
        "Be thorough but don't create items where none exist."
    ),
}


def mode_prompt(mode: str) -> str:
    """System prompt for a mode; unknown modes get the base persona alone."""
    try:
        name, focus = MODE_FOCUS[AIMode(mode)]
    except ValueError:
        return BASE_PERSONA
    bullets = "\n".join(f"- {item}" for item in focus)
    return f"{BASE_PERSONA}\n\nYou are in {name} mode. Focus on:\n{bullets}"


def render_context(context: StructuredContext) -> str:
    """Markdown rendering of the context sections; empty sections are omitted."""
    parts: list[str] = []

    if context.conversation_purpose:
        parts.append(f"## Conversation Purpose\n{context.conversation_purpose}")

    if context.conversation_summary:
        parts.append(f"## Conversation Summary\n{context.conversation_summary}")

    if context.pinned_documents:
        parts.append(
            "## Pinned Documents\n"
            + "\n\n".join(f"### {d.title}\n{d.content}" for d in context.pinned_documents)
        )

    if context.accepted_decisions:
        lines = []
        for d in context.accepted_decisions:
            line = f"- **{d.title}**: {d.decision} ({d.impact} impact)"
            if d.rationale:
                line += f"\n  Rationale: {d.rationale}"
            lines.append(line)
        parts.append("## Accepted Decisions\n" + "\n".join(lines))

    if context.active_tasks:
        lines = []
        for t in context.active_tasks:
            line = f"- **{t.title}** [{t.status}] ({t.priority} priority)"
            if t.description:
                line += f": {t.description}"
            if t.next_action:
                line += f"\n  Next action: {t.next_action}"
            lines.append(line)
        parts.append("## Active Tasks\n" + "\n".join(lines))

    if context.blocked_tasks:
        lines = []
        for t in context.blocked_tasks:
            line = f"- **{t.title}** ({t.priority} priority)"
            if t.blocked_reason:
                line += f": blocked by {t.blocked_reason}"
            lines.append(line)
        parts.append("## Blocked Tasks\n" + "\n".join(lines))

    if not parts:
        return ""
    return CONTEXT_HEADING + "\n\n".join(parts)


def system_prompt(context: StructuredContext) -> str:
    return mode_prompt(context.mode) + render_context(context)


def extraction_user_prompt(content: str) -> str:
    return f"Extract from this content:\n\n{content}"

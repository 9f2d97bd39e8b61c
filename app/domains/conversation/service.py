"""Conversation service layer: creation, mode changes and the archive lifecycle."""

import logging
from dataclasses import dataclass
from typing import Any, Dict
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.domains.context.builder import default_include_recent_messages
from app.domains.conversation.lifecycle import (
    HealthReport,
    HealthThresholds,
    assess_health,
    validate_archive_summary,
)
from app.domains.message.store import MessagePage, MessageStore
from app.exceptions.base import ValidationError
from app.exceptions.conversation import (
    ConversationNotFoundError,
    InvalidConversationTransitionError,
    ProjectNotFoundError,
)
from app.schemas.conversation import ConversationCreate
from app.shared.activity import record_activity
from app.shared.cache import EntityCache
from models import ActivityType, AIMode, Conversation, Project

logger = logging.getLogger(__name__)


@dataclass
class OpenedConversation:
    """A conversation as presented when a user opens it."""

    conversation: Conversation
    message_count: int
    health: HealthReport
    include_recent_messages_default: bool
    page: MessagePage | None

    @property
    def messages_loaded(self) -> bool:
        return self.page is not None


class ConversationService:
    """Service class for conversation business logic."""

    def __init__(
        self,
        db: AsyncSession,
        cache: EntityCache | None = None,
        thresholds: HealthThresholds | None = None,
    ):
        self.db = db
        self.messages = MessageStore(db, cache)
        self.thresholds = thresholds or HealthThresholds.from_settings()

    async def create_conversation(self, project_id: UUID, data: ConversationCreate) -> Conversation:
        """Create a new, active conversation in a project."""
        project = await self.db.get(Project, project_id)
        if not project:
            raise ProjectNotFoundError(str(project_id))

        conversation = Conversation(
            project_id=project_id,
            title=data.title.strip(),
            purpose=(data.purpose or "").strip() or None,
            mode=data.mode,
            is_archived=False,
        )

        try:
            self.db.add(conversation)
            await self.db.commit()
            await self.db.refresh(conversation)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to create conversation: {str(e)}") from e

        logger.info("Created conversation %s in project %s", conversation.id, project_id)
        return conversation

    async def get_conversation(self, conversation_id: UUID) -> Conversation:
        result = await self.db.execute(select(Conversation).where(Conversation.id == conversation_id))
        conversation = result.scalar_one_or_none()
        if not conversation:
            raise ConversationNotFoundError(str(conversation_id))
        return conversation

    async def list_conversations(
        self, project_id: UUID, include_archived: bool = True
    ) -> Dict[str, Any]:
        """List a project's conversations, most recently updated first, with message counts."""
        stmt = select(Conversation).where(Conversation.project_id == project_id)
        if not include_archived:
            stmt = stmt.where(Conversation.is_archived.is_(False))
        stmt = stmt.order_by(desc(Conversation.updated_at))

        result = await self.db.execute(stmt)
        conversations = list(result.scalars().all())
        counts = await self.messages.count_many([c.id for c in conversations])

        items = []
        for conversation in conversations:
            count = counts.get(conversation.id, 0)
            items.append(
                {
                    "conversation": conversation,
                    "message_count": count,
                    "health": assess_health(count, bool(conversation.summary), self.thresholds),
                }
            )
        return {"items": items, "total": len(items)}

    async def update_mode(self, conversation_id: UUID, mode: AIMode) -> Conversation:
        conversation = await self.get_conversation(conversation_id)
        conversation.mode = mode
        await self._commit(conversation, "update mode")
        logger.info("Conversation %s switched to %s mode", conversation_id, mode.value)
        return conversation

    async def archive(
        self, conversation_id: UUID, summary: str, purpose: str | None = None
    ) -> Conversation:
        """
        Archive an active conversation.

        The summary is validated before anything is loaded or written, so a
        rejected request leaves the conversation untouched. The summary (and the
        purpose, when given) is stored together with the flag, and the transition
        is recorded in the activity log in the same commit.
        """
        trimmed = validate_archive_summary(summary)

        conversation = await self.get_conversation(conversation_id)
        if conversation.is_archived:
            raise InvalidConversationTransitionError("Conversation is already archived")

        conversation.summary = trimmed
        if purpose is not None and purpose.strip():
            conversation.purpose = purpose.strip()
        conversation.is_archived = True
        record_activity(
            self.db,
            project_id=conversation.project_id,
            activity_type=ActivityType.CONVERSATION_ARCHIVED,
            entity_type="conversation",
            entity_id=conversation.id,
            description=f'Archived conversation "{conversation.title}"',
        )
        await self._commit(conversation, "archive")

        logger.info("Archived conversation %s", conversation_id)
        return conversation

    async def unarchive(self, conversation_id: UUID) -> Conversation:
        """Reactivate an archived conversation; its summary is kept."""
        conversation = await self.get_conversation(conversation_id)
        if not conversation.is_archived:
            raise InvalidConversationTransitionError("Conversation is not archived")

        conversation.is_archived = False
        await self._commit(conversation, "unarchive")

        logger.info("Unarchived conversation %s", conversation_id)
        return conversation

    async def get_health(self, conversation_id: UUID) -> HealthReport:
        conversation = await self.get_conversation(conversation_id)
        count = await self.messages.count(conversation.id)
        return assess_health(count, bool(conversation.summary), self.thresholds)

    async def open_conversation(
        self, conversation_id: UUID, load_messages: bool = False
    ) -> OpenedConversation:
        """
        Open a conversation for viewing.

        Active conversations come with their newest message page. Archived ones
        expose only summary and purpose unless ``load_messages`` is requested.
        """
        conversation = await self.get_conversation(conversation_id)
        count = await self.messages.count(conversation.id)

        page = None
        if not conversation.is_archived or load_messages:
            page = await self.messages.fetch_page(conversation.id)

        return OpenedConversation(
            conversation=conversation,
            message_count=count,
            health=assess_health(count, bool(conversation.summary), self.thresholds),
            include_recent_messages_default=default_include_recent_messages(conversation),
            page=page,
        )

    # Private helper methods
    async def _commit(self, conversation: Conversation, action: str) -> None:
        try:
            await self.db.commit()
            await self.db.refresh(conversation)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to %s conversation %s: %s", action, conversation.id, e)
            raise ValidationError(f"Failed to {action} conversation: {str(e)}") from e

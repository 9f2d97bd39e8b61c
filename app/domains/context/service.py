"""Context service: loads project knowledge and builds the structured context."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.domains.context.builder import build_context, default_include_recent_messages
from app.domains.message.store import MessageStore
from app.exceptions.conversation import ConversationNotFoundError
from app.schemas.context import StructuredContext
from app.shared.cache import EntityCache
from models import Conversation, Decision, Document, Task

logger = logging.getLogger(__name__)


class ContextService:
    """Service class for building AI context from stored project knowledge."""

    def __init__(self, db: AsyncSession, cache: EntityCache | None = None):
        self.db = db
        self.messages = MessageStore(db, cache)

    async def build_for_conversation(
        self, conversation_id: UUID, include_recent_messages: bool | None = None
    ) -> StructuredContext:
        """Build the context the next turn of a conversation would send.

        Recent messages come from the newest loaded message page. When the caller
        gives no preference the conversation's default applies.
        """
        conversation = await self._get_conversation(conversation_id)
        if include_recent_messages is None:
            include_recent_messages = default_include_recent_messages(conversation)

        tasks, decisions, documents = await self._load_knowledge(conversation.project_id)
        page = await self.messages.fetch_page(conversation.id)

        context = build_context(
            conversation,
            tasks,
            decisions,
            documents,
            page.messages,
            include_recent_messages,
        )
        logger.debug(
            "Built %s context for %s: %d docs, %d decisions, %d active, %d blocked, %d messages",
            context.mode,
            conversation_id,
            len(context.pinned_documents),
            len(context.accepted_decisions),
            len(context.active_tasks),
            len(context.blocked_tasks),
            len(context.recent_messages),
        )
        return context

    # Private helper methods
    async def _get_conversation(self, conversation_id: UUID) -> Conversation:
        result = await self.db.execute(select(Conversation).where(Conversation.id == conversation_id))
        conversation = result.scalar_one_or_none()
        if not conversation:
            raise ConversationNotFoundError(str(conversation_id))
        return conversation

    async def _load_knowledge(self, project_id: UUID):
        # Filtering by status/pin state is the builder's job, so load everything
        tasks = await self.db.execute(
            select(Task).where(Task.project_id == project_id).order_by(Task.created_at)
        )
        decisions = await self.db.execute(
            select(Decision).where(Decision.project_id == project_id).order_by(Decision.created_at)
        )
        documents = await self.db.execute(
            select(Document).where(Document.project_id == project_id).order_by(Document.created_at)
        )
        return (
            list(tasks.scalars().all()),
            list(decisions.scalars().all()),
            list(documents.scalars().all()),
        )

"""Message store: cursor-paginated reads and appends of conversation messages."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.shared.cache import MESSAGE_PAGES, EntityCache
from app.shared.pagination import CursorParams, paginate_before
from models import Message, MessageRole

logger = logging.getLogger(__name__)

MESSAGE_PAGE_SIZE = 20


@dataclass(frozen=True)
class MessageRecord:
    """Detached snapshot of a stored message, safe to keep in the cache."""

    id: UUID
    conversation_id: UUID
    role: MessageRole
    content: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, message: Message) -> "MessageRecord":
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            role=message.role,
            content=message.content,
            created_at=message.created_at,
            updated_at=message.updated_at,
        )


@dataclass(frozen=True)
class MessagePage:
    """A page of messages, oldest first, plus the cursor for the next-older page."""

    messages: list[MessageRecord] = field(default_factory=list)
    oldest_cursor: datetime | None = None
    has_more: bool = False


class MessageStore:
    """Accessor for conversation messages.

    Pages are cached per conversation in the injected ``EntityCache`` and the
    cache for a conversation is invalidated whenever a message is appended to it.
    """

    def __init__(self, db: AsyncSession, cache: EntityCache | None = None):
        self.db = db
        self.cache = cache

    async def fetch_page(self, conversation_id: UUID, cursor: datetime | None = None) -> MessagePage:
        """Fetch the newest page older than ``cursor`` (the most recent page when omitted)."""
        if self.cache is not None:
            cached = self.cache.get(MESSAGE_PAGES, conversation_id, cursor)
            if cached is not None:
                return cached

        query = select(Message).where(Message.conversation_id == conversation_id)
        data = await paginate_before(
            self.db,
            query,
            Message.created_at,
            CursorParams(cursor=cursor, size=MESSAGE_PAGE_SIZE),
        )
        page = MessagePage(
            messages=[MessageRecord.from_model(message) for message in data["items"]],
            oldest_cursor=data["oldest_cursor"],
            has_more=data["has_more"],
        )

        if self.cache is not None:
            self.cache.put(MESSAGE_PAGES, conversation_id, page, cursor)
        return page

    async def fetch_all(self, conversation_id: UUID) -> list[MessageRecord]:
        """Walk every page from the newest back and return one chronological list."""
        pages: list[MessagePage] = []
        cursor = None
        while True:
            page = await self.fetch_page(conversation_id, cursor)
            pages.append(page)
            if not page.has_more or page.oldest_cursor is None:
                break
            cursor = page.oldest_cursor

        # Pages were fetched newest first
        return self.flatten_pages(list(reversed(pages)))

    @staticmethod
    def flatten_pages(pages: list[MessagePage]) -> list[MessageRecord]:
        """Concatenate pages given oldest page first into one chronological list."""
        messages: list[MessageRecord] = []
        seen: set[UUID] = set()
        for page in pages:
            for message in page.messages:
                if message.id in seen:
                    continue
                seen.add(message.id)
                messages.append(message)
        return messages

    async def create(self, conversation_id: UUID, role: MessageRole, content: str) -> Message:
        """Append a message and commit it; invalidates cached pages for the conversation."""
        message = Message(conversation_id=conversation_id, role=role, content=content)
        try:
            self.db.add(message)
            await self.db.commit()
            await self.db.refresh(message)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to store %s message in %s: %s", role.value, conversation_id, e)
            raise

        if self.cache is not None:
            self.cache.invalidate(MESSAGE_PAGES, conversation_id)
        return message

    async def count(self, conversation_id: UUID) -> int:
        query = select(func.count(Message.id)).where(Message.conversation_id == conversation_id)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def count_many(self, conversation_ids: list[UUID]) -> dict[UUID, int]:
        """Message counts for several conversations in one query."""
        if not conversation_ids:
            return {}
        query = (
            select(Message.conversation_id, func.count(Message.id))
            .where(Message.conversation_id.in_(conversation_ids))
            .group_by(Message.conversation_id)
        )
        result = await self.db.execute(query)
        counts = {conversation_id: 0 for conversation_id in conversation_ids}
        counts.update({row[0]: row[1] for row in result.all()})
        return counts

"""Streaming chat session controller.

A send persists the user message, opens one streamed completion carrying the
structured context, and persists the assistant reply only after the stream has
completed. A failed stream leaves the user message in place and stores nothing
for the assistant.
"""

import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from uuid import UUID

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.domains.chat.stream_parser import SSEDeltaParser
from app.domains.message.store import MessageStore
from app.exceptions.ai import StreamProtocolError
from app.exceptions.conversation import (
    ConversationArchivedError,
    ConversationNotFoundError,
    EmptyMessageError,
    ReplyNotSavedError,
    SendInProgressError,
)
from app.schemas.context import StructuredContext
from app.services.functions_client import FunctionsClient, transport_error
from app.shared.cache import EntityCache
from models import Conversation, Message, MessageRole

logger = logging.getLogger(__name__)

DeltaCallback = Callable[[str], Awaitable[None] | None]


class SendRegistry:
    """Tracks conversations with a send in flight (at most one each)."""

    def __init__(self):
        self._in_flight: set[UUID] = set()

    def acquire(self, conversation_id: UUID) -> None:
        if conversation_id in self._in_flight:
            raise SendInProgressError()
        self._in_flight.add(conversation_id)

    def release(self, conversation_id: UUID) -> None:
        self._in_flight.discard(conversation_id)

    def is_sending(self, conversation_id: UUID) -> bool:
        return conversation_id in self._in_flight


class ChatTurn:
    """One in-flight exchange: the stored user message and the open reply stream."""

    def __init__(
        self,
        conversation_id: UUID,
        user_message: Message,
        response: httpx.Response,
        store: MessageStore,
        registry: SendRegistry,
    ):
        self.conversation_id = conversation_id
        self.user_message = user_message
        self.assistant_message: Message | None = None
        self.detached = False
        self._response = response
        self._store = store
        self._registry = registry
        self._parser = SSEDeltaParser()
        self._parts: list[str] = []

    @property
    def content(self) -> str:
        """Reply text accumulated so far."""
        return "".join(self._parts)

    def detach(self) -> None:
        """Stop delivering deltas to the viewer; the reply is still stored on completion."""
        self.detached = True

    async def deltas(self) -> AsyncIterator[str]:
        """Yield content deltas as they arrive, then store the full reply.

        Closing the iterator early closes the stream and stores nothing.
        """
        try:
            try:
                async for chunk in self._response.aiter_bytes():
                    for delta in self._parser.feed(chunk):
                        self._parts.append(delta)
                        yield delta
                    if self._parser.finished:
                        break
                for delta in self._parser.close():
                    self._parts.append(delta)
                    yield delta
            except StreamProtocolError:
                self._discard()
                raise
            except httpx.HTTPError as e:
                self._discard()
                raise transport_error(e) from e
            finally:
                await self._response.aclose()

            try:
                self.assistant_message = await self._persist_reply()
            except SQLAlchemyError as e:
                logger.error(
                    "Reply of %d characters lost in conversation %s: %s",
                    len(self.content),
                    self.conversation_id,
                    e,
                )
                raise ReplyNotSavedError() from e
        finally:
            self._registry.release(self.conversation_id)

    async def run(self, on_delta: DeltaCallback | None = None) -> Message | None:
        """Drain the stream, passing deltas to ``on_delta`` until the turn is detached."""
        async for delta in self.deltas():
            if on_delta is None or self.detached:
                continue
            result = on_delta(delta)
            if inspect.isawaitable(result):
                await result
        return self.assistant_message

    # Private helper methods
    def _discard(self) -> None:
        logger.warning(
            "Discarding partial reply of %d characters in conversation %s",
            len(self.content),
            self.conversation_id,
        )
        self._parts.clear()

    async def _persist_reply(self) -> Message | None:
        content = self.content
        if not content.strip():
            logger.info("Empty reply in conversation %s; nothing stored", self.conversation_id)
            return None
        message = await self._store.create(self.conversation_id, MessageRole.ASSISTANT, content)
        logger.info(
            "Stored reply of %d characters in conversation %s", len(content), self.conversation_id
        )
        return message


class ChatSessionController:
    """Service class orchestrating chat turns for conversations."""

    def __init__(
        self,
        db: AsyncSession,
        functions_client: FunctionsClient,
        registry: SendRegistry,
        cache: EntityCache | None = None,
    ):
        self.db = db
        self.functions_client = functions_client
        self.registry = registry
        self.store = MessageStore(db, cache)

    async def start(
        self, conversation_id: UUID, user_text: str, context: StructuredContext
    ) -> ChatTurn:
        """
        Validate the send, store the user message and open the reply stream.

        Raises:
            EmptyMessageError: text is empty once trimmed
            ConversationNotFoundError: no such conversation
            ConversationArchivedError: conversation is archived
            SendInProgressError: another send is in flight for the conversation
            AIServiceError: the chat function refused or could not be reached;
                the user message stays stored
        """
        text = (user_text or "").strip()
        if not text:
            raise EmptyMessageError()

        result = await self.db.execute(select(Conversation).where(Conversation.id == conversation_id))
        conversation = result.scalar_one_or_none()
        if not conversation:
            raise ConversationNotFoundError(str(conversation_id))
        if conversation.is_archived:
            raise ConversationArchivedError()

        self.registry.acquire(conversation_id)
        try:
            user_message = await self.store.create(conversation_id, MessageRole.USER, text)
            logger.info(
                "Opening %s stream for conversation %s (%d recent messages)",
                context.mode,
                conversation_id,
                len(context.recent_messages) if context.include_recent_messages else 0,
            )
            response = await self.functions_client.open_chat_stream(text, context)
        except Exception:
            self.registry.release(conversation_id)
            raise

        return ChatTurn(conversation_id, user_message, response, self.store, self.registry)

    async def send(
        self,
        conversation_id: UUID,
        user_text: str,
        context: StructuredContext,
        on_delta: DeltaCallback | None = None,
    ) -> ChatTurn:
        """Run a full turn; returns the finished turn with both messages."""
        turn = await self.start(conversation_id, user_text, context)
        await turn.run(on_delta)
        return turn

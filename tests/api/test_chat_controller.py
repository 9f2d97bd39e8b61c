"""
API tests for the chat controller.

The backend chat function is the ``functions_stub`` fixture; replies are read
back from the server-sent event stream the endpoint returns.
"""

import json
import uuid
from unittest.mock import patch

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import select

from app.domains.message.store import MessageStore
from models import Message, MessageRole


def frame(text: str) -> bytes:
    return f"data: {json.dumps({'choices': [{'delta': {'content': text}}]})}\n\n".encode()


DONE = b"data: [DONE]\n\n"


def read_events(body: str) -> list[dict]:
    return [
        json.loads(block[len("data: "):])
        for block in body.split("\n\n")
        if block.startswith("data: ")
    ]


async def stored(db, conversation_id):
    result = await db.execute(
        select(Message).where(Message.conversation_id == conversation_id).order_by(Message.created_at)
    )
    return list(result.scalars().all())


class TestSendMessage:
    """Test cases for POST /api/conversations/{id}/messages."""

    @pytest.mark.asyncio
    async def test_stream_reply(self, client: AsyncClient, test_db, test_conversation, functions_stub):
        """Test that deltas are relayed and the stored reply closes the stream."""
        functions_stub.chat_chunks = [frame("Use "), frame("Stripe"), DONE]

        response = await client.post(
            f"/api/conversations/{test_conversation.id}/messages", json={"content": "Which provider?"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/event-stream")
        events = read_events(response.text)
        assert events[:2] == [
            {"type": "delta", "content": "Use "},
            {"type": "delta", "content": "Stripe"},
        ]
        assert events[-1]["type"] == "message"
        assert events[-1]["message"]["content"] == "Use Stripe"
        assert events[-1]["message"]["role"] == "assistant"

        messages = await stored(test_db, test_conversation.id)
        assert [(m.role, m.content) for m in messages] == [
            (MessageRole.USER, "Which provider?"),
            (MessageRole.ASSISTANT, "Use Stripe"),
        ]

    @pytest.mark.asyncio
    async def test_context_sent_to_function(self, client: AsyncClient, test_conversation, functions_stub, project_knowledge):
        functions_stub.chat_chunks = [DONE]

        await client.post(
            f"/api/conversations/{test_conversation.id}/messages",
            json={"content": "Hi", "include_recent_messages": False},
        )

        body = json.loads(functions_stub.requests[0].content)
        assert body["userMessage"] == "Hi"
        assert body["context"]["mode"] == "design"
        assert body["context"]["includeRecentMessages"] is False
        assert [d["title"] for d in body["context"]["pinnedDocuments"]] == ["Checkout spec"]

    @pytest.mark.asyncio
    async def test_empty_reply_closes_without_message(self, client: AsyncClient, test_db, test_conversation, functions_stub):
        functions_stub.chat_chunks = [DONE]

        response = await client.post(
            f"/api/conversations/{test_conversation.id}/messages", json={"content": "Hello?"}
        )

        assert read_events(response.text) == [{"type": "message", "message": None}]
        assert len(await stored(test_db, test_conversation.id)) == 1

    @pytest.mark.asyncio
    async def test_malformed_frame_sends_error_event(self, client: AsyncClient, test_db, test_conversation, functions_stub):
        """Test that a broken stream ends with an error event and no stored reply."""
        functions_stub.chat_chunks = [frame("partial"), b"data: {not json\n\n"]

        response = await client.post(
            f"/api/conversations/{test_conversation.id}/messages", json={"content": "Go"}
        )

        events = read_events(response.text)
        assert events[0] == {"type": "delta", "content": "partial"}
        assert events[-1]["type"] == "error"
        assert events[-1]["error_code"] == "AI_STREAM_PROTOCOL_ERROR"
        messages = await stored(test_db, test_conversation.id)
        assert [m.role for m in messages] == [MessageRole.USER]

    @pytest.mark.asyncio
    async def test_rate_limited_before_stream(self, client: AsyncClient, test_db, test_conversation, functions_stub):
        functions_stub.chat_status = 429
        functions_stub.chat_error_body = {}

        response = await client.post(
            f"/api/conversations/{test_conversation.id}/messages", json={"content": "Go"}
        )

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        data = response.json()
        assert data["error_code"] == "AI_RATE_LIMITED"
        assert data["message"] == "Rate limit exceeded. Please try again later."
        # The user's message stays stored
        assert len(await stored(test_db, test_conversation.id)) == 1

    @pytest.mark.asyncio
    async def test_archived_conversation(self, client: AsyncClient, archived_conversation, functions_stub):
        response = await client.post(
            f"/api/conversations/{archived_conversation.id}/messages", json={"content": "Hello"}
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error_code"] == "CONVERSATION_ARCHIVED"
        assert functions_stub.requests == []

    @pytest.mark.asyncio
    async def test_empty_content(self, client: AsyncClient, test_conversation):
        response = await client.post(
            f"/api/conversations/{test_conversation.id}/messages", json={"content": "   "}
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error_code"] == "EMPTY_MESSAGE"

    @pytest.mark.asyncio
    async def test_missing_conversation(self, client: AsyncClient):
        response = await client.post(
            f"/api/conversations/{uuid.uuid4()}/messages", json={"content": "Hello"}
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_reply_write_failure_sends_error_event(
        self, client: AsyncClient, test_db, test_conversation, functions_stub
    ):
        """Test that a reply that cannot be stored still ends the stream with an error event."""
        functions_stub.chat_chunks = [frame("answer"), DONE]
        create = MessageStore.create

        async def create_user_only(store, conversation_id, role, content):
            if role == MessageRole.ASSISTANT:
                raise SQLAlchemyError("disk full")
            return await create(store, conversation_id, role, content)

        with patch.object(MessageStore, "create", create_user_only):
            response = await client.post(
                f"/api/conversations/{test_conversation.id}/messages", json={"content": "Go"}
            )

        events = read_events(response.text)
        assert events == [
            {"type": "delta", "content": "answer"},
            {
                "type": "error",
                "message": "The reply could not be saved. Please try again.",
                "error_code": "REPLY_NOT_SAVED",
            },
        ]
        messages = await stored(test_db, test_conversation.id)
        assert [m.role for m in messages] == [MessageRole.USER]

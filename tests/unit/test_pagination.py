"""
Unit tests for Pagination utilities.

This module contains unit tests for the cursor pagination parameters, the
cursor codec and the ``paginate_before`` query helper.
"""

from datetime import datetime

import pytest
from pydantic import ValidationError
from sqlalchemy.future import select

from app.shared.pagination import (
    CursorPage,
    CursorParams,
    decode_cursor,
    encode_cursor,
    paginate_before,
)
from models import Message
from tests.factories import add_messages


class TestCursorParams:
    """Test cases for CursorParams."""

    def test_default_values(self):
        """Test default pagination parameters."""
        params = CursorParams()

        assert params.cursor is None
        assert params.size == 20

    def test_validation_size_bounds(self):
        with pytest.raises(ValidationError):
            CursorParams(size=0)

        with pytest.raises(ValidationError):
            CursorParams(size=101)

        assert CursorParams(size=100).size == 100

    def test_cursor_parsed_from_string(self):
        params = CursorParams(cursor="2026-03-01T10:00:00")

        assert params.cursor == datetime(2026, 3, 1, 10, 0, 0)


class TestCursorCodec:
    """Test cases for encode_cursor and decode_cursor."""

    def test_encode(self):
        assert encode_cursor(datetime(2026, 3, 1, 10, 0, 5)) == "2026-03-01T10:00:05"
        assert encode_cursor(None) is None

    @pytest.mark.parametrize("value", [None, ""])
    def test_decode_empty(self, value):
        assert decode_cursor(value) is None

    def test_decode_naive(self):
        assert decode_cursor("2026-03-01T10:00:05.123456") == datetime(2026, 3, 1, 10, 0, 5, 123456)

    def test_decode_zulu_suffix(self):
        """Test that a trailing Z is read as UTC and dropped."""
        assert decode_cursor("2026-03-01T10:00:05Z") == datetime(2026, 3, 1, 10, 0, 5)

    def test_decode_offset_converted_to_utc(self):
        assert decode_cursor("2026-03-01T12:00:05+02:00") == datetime(2026, 3, 1, 10, 0, 5)

    def test_decode_invalid(self):
        with pytest.raises(ValueError):
            decode_cursor("yesterday")


class TestPaginateBefore:
    """Test cases for paginate_before."""

    @pytest.mark.asyncio
    async def test_newest_page_in_chronological_order(self, test_db, test_conversation):
        messages = await add_messages(test_db, test_conversation, 5)
        query = select(Message).where(Message.conversation_id == test_conversation.id)

        page = await paginate_before(test_db, query, Message.created_at, CursorParams(size=3))

        assert [m.content for m in page["items"]] == ["message 2", "message 3", "message 4"]
        assert page["oldest_cursor"] == messages[2].created_at
        assert page["has_more"] is True

    @pytest.mark.asyncio
    async def test_cursor_is_exclusive(self, test_db, test_conversation):
        messages = await add_messages(test_db, test_conversation, 5)
        query = select(Message).where(Message.conversation_id == test_conversation.id)

        page = await paginate_before(
            test_db, query, Message.created_at, CursorParams(cursor=messages[2].created_at, size=3)
        )

        assert [m.content for m in page["items"]] == ["message 0", "message 1"]
        assert page["has_more"] is False

    @pytest.mark.asyncio
    async def test_empty(self, test_db, test_conversation):
        query = select(Message).where(Message.conversation_id == test_conversation.id)

        page = await paginate_before(test_db, query, Message.created_at, CursorParams())

        assert page == {"items": [], "oldest_cursor": None, "has_more": False}

    def test_cursor_page_model(self):
        page = CursorPage[int](items=[1, 2], oldest_cursor=None, has_more=False)

        assert page.items == [1, 2]

"""Chat API controller: sends a turn and streams the reply as server-sent events."""

import json
import logging
from collections.abc import AsyncIterator
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import (
    get_cache,
    get_db,
    get_functions_client,
    get_send_registry,
    validate_token,
)
from app.domains.chat.session import ChatSessionController, ChatTurn, SendRegistry
from app.domains.context.service import ContextService
from app.exceptions.base import BaseAppException
from app.schemas.conversation import MessageResponse, SendMessageRequest
from app.services.functions_client import FunctionsClient
from app.shared.cache import EntityCache

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/conversations",
    tags=["chat"],
    dependencies=[Depends(validate_token)],
)


def _event(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


async def turn_events(turn: ChatTurn) -> AsyncIterator[str]:
    """Relay a turn as ``delta`` events followed by one ``message`` or ``error`` event."""
    try:
        async for delta in turn.deltas():
            yield _event({"type": "delta", "content": delta})
    except BaseAppException as e:
        logger.error("Chat stream failed for %s: %s", turn.conversation_id, e.message)
        yield _event({"type": "error", "message": e.message, "error_code": e.error_code})
        return

    message = (
        MessageResponse.model_validate(turn.assistant_message).model_dump(mode="json")
        if turn.assistant_message is not None
        else None
    )
    yield _event({"type": "message", "message": message})


@router.post("/{conversation_id}/messages")
async def send_message(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    body: SendMessageRequest = Body(...),
    db: AsyncSession = Depends(get_db),
    cache: EntityCache = Depends(get_cache),
    registry: SendRegistry = Depends(get_send_registry),
    functions_client: FunctionsClient = Depends(get_functions_client),
):
    """Send a user message and stream the assistant's reply.

    Validation failures, a send already in flight and refusals from the chat
    function are plain HTTP errors; the stream only starts once the user
    message is stored and the reply stream is open.
    """
    context = await ContextService(db, cache).build_for_conversation(
        conversation_id, body.include_recent_messages
    )
    controller = ChatSessionController(db, functions_client, registry, cache)
    turn = await controller.start(conversation_id, body.content, context)

    return StreamingResponse(
        turn_events(turn),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )

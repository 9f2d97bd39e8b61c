"""Conversation API controller with FastAPI endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_cache, get_db, validate_token
from app.domains.context.service import ContextService
from app.domains.conversation.service import ConversationService
from app.domains.message.store import MessagePage, MessageStore
from app.exceptions.base import ValidationError
from app.schemas.base import ResponseSchema
from app.schemas.conversation import (
    ArchiveRequest,
    ConversationCreate,
    ConversationDetailResponse,
    ConversationListItem,
    ConversationListResponse,
    ConversationModeUpdate,
    ConversationResponse,
    HealthReportResponse,
    MessagePageResponse,
    MessageResponse,
)
from app.shared.cache import EntityCache
from app.shared.pagination import decode_cursor, encode_cursor

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["conversations"],
    dependencies=[Depends(validate_token)],  # Global token validation for all routes
)


def _page_response(page: MessagePage) -> MessagePageResponse:
    return MessagePageResponse(
        messages=[MessageResponse.model_validate(m) for m in page.messages],
        oldest_cursor=encode_cursor(page.oldest_cursor),
        has_more=page.has_more,
    )


def _conversation_response(conversation, message_count: int = 0) -> ConversationResponse:
    response = ConversationResponse.model_validate(conversation)
    response.message_count = message_count
    return response


@router.post(
    "/projects/{project_id}/conversations", response_model=ResponseSchema, status_code=201
)
async def create_conversation(
    project_id: UUID = Path(..., description="Project ID"),
    data: ConversationCreate = Body(...),
    db: AsyncSession = Depends(get_db),
):
    """Create a new conversation in a project."""
    service = ConversationService(db)
    conversation = await service.create_conversation(project_id, data)

    return ResponseSchema(
        status="success",
        message="Conversation created successfully",
        data=_conversation_response(conversation).model_dump(mode="json"),
    )


@router.get("/projects/{project_id}/conversations", response_model=ConversationListResponse)
async def list_conversations(
    project_id: UUID = Path(..., description="Project ID"),
    include_archived: bool = Query(True, description="Include archived conversations"),
    db: AsyncSession = Depends(get_db),
):
    """List a project's conversations with message counts and health."""
    service = ConversationService(db)
    result = await service.list_conversations(project_id, include_archived=include_archived)

    conversations = []
    for item in result["items"]:
        base = _conversation_response(item["conversation"], item["message_count"])
        conversations.append(
            ConversationListItem(**base.model_dump(), health=item["health"].level.value)
        )
    return ConversationListResponse(conversations=conversations, total=result["total"])


@router.get("/conversations/{conversation_id}", response_model=ConversationDetailResponse)
async def open_conversation(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    load_messages: bool = Query(
        False, description="Load messages of an archived conversation as well"
    ),
    db: AsyncSession = Depends(get_db),
    cache: EntityCache = Depends(get_cache),
):
    """Open a conversation with its health and (unless archived) its newest messages."""
    service = ConversationService(db, cache)
    opened = await service.open_conversation(conversation_id, load_messages=load_messages)

    return ConversationDetailResponse(
        conversation=_conversation_response(opened.conversation, opened.message_count),
        health=HealthReportResponse(**opened.health.to_dict()),
        include_recent_messages_default=opened.include_recent_messages_default,
        messages_loaded=opened.messages_loaded,
        page=_page_response(opened.page) if opened.page is not None else None,
    )


@router.patch("/conversations/{conversation_id}/mode", response_model=ResponseSchema)
async def update_mode(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    data: ConversationModeUpdate = Body(...),
    db: AsyncSession = Depends(get_db),
):
    """Change the AI mode of a conversation."""
    service = ConversationService(db)
    conversation = await service.update_mode(conversation_id, data.mode)

    return ResponseSchema(
        status="success",
        message="Conversation mode updated",
        data=_conversation_response(conversation).model_dump(mode="json"),
    )


@router.post("/conversations/{conversation_id}/archive", response_model=ResponseSchema)
async def archive_conversation(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    data: ArchiveRequest = Body(...),
    db: AsyncSession = Depends(get_db),
):
    """Archive a conversation with a summary."""
    service = ConversationService(db)
    conversation = await service.archive(conversation_id, data.summary, data.purpose)

    return ResponseSchema(
        status="success",
        message="Conversation archived",
        data=_conversation_response(conversation).model_dump(mode="json"),
    )


@router.post("/conversations/{conversation_id}/unarchive", response_model=ResponseSchema)
async def unarchive_conversation(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    db: AsyncSession = Depends(get_db),
):
    """Return an archived conversation to active; its summary is kept."""
    service = ConversationService(db)
    conversation = await service.unarchive(conversation_id)

    return ResponseSchema(
        status="success",
        message="Conversation unarchived",
        data=_conversation_response(conversation).model_dump(mode="json"),
    )


@router.get("/conversations/{conversation_id}/health", response_model=HealthReportResponse)
async def get_health(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    db: AsyncSession = Depends(get_db),
):
    """Health classification and recommendations for a conversation."""
    service = ConversationService(db)
    report = await service.get_health(conversation_id)
    return HealthReportResponse(**report.to_dict())


@router.get("/conversations/{conversation_id}/messages", response_model=MessagePageResponse)
async def get_messages(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    cursor: str | None = Query(None, description="Oldest timestamp of the previous page"),
    db: AsyncSession = Depends(get_db),
    cache: EntityCache = Depends(get_cache),
):
    """Fetch one page of messages, newest page first, each page oldest first."""
    try:
        before = decode_cursor(cursor)
    except ValueError as e:
        raise ValidationError("Cursor must be an ISO timestamp", details={"cursor": cursor}) from e

    conversation = await ConversationService(db, cache).get_conversation(conversation_id)
    page = await MessageStore(db, cache).fetch_page(conversation.id, before)
    return _page_response(page)


@router.get("/conversations/{conversation_id}/context")
async def preview_context(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    include_recent_messages: bool | None = Query(
        None, description="Override the default recent-message inclusion"
    ),
    db: AsyncSession = Depends(get_db),
    cache: EntityCache = Depends(get_cache),
):
    """Preview the structured context the next turn would send."""
    service = ContextService(db, cache)
    context = await service.build_for_conversation(conversation_id, include_recent_messages)
    return context.to_wire()

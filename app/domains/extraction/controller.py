"""Extraction API controller."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_functions_client, validate_token
from app.domains.conversation.service import ConversationService
from app.domains.extraction.service import ExtractionEngine
from app.schemas.base import ResponseSchema
from app.schemas.extraction import ExtractionCounts, ExtractionResultResponse, ExtractRequest
from app.services.functions_client import FunctionsClient

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/conversations",
    tags=["extraction"],
    dependencies=[Depends(validate_token)],
)


@router.post("/{conversation_id}/extract", response_model=ResponseSchema, status_code=201)
async def extract_items(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    body: ExtractRequest = Body(...),
    db: AsyncSession = Depends(get_db),
    functions_client: FunctionsClient = Depends(get_functions_client),
):
    """Extract tasks, decisions or documents from message content and create them."""
    conversation = await ConversationService(db).get_conversation(conversation_id)

    engine = ExtractionEngine(db, functions_client)
    result = await engine.extract_and_materialize(
        project_id=conversation.project_id,
        conversation_id=conversation.id,
        content=body.content,
        kind=body.kind,
    )

    response = ExtractionResultResponse(
        kind=result.kind,
        created=ExtractionCounts(**result.created),
        failed=ExtractionCounts(**result.failed),
        task_ids=result.task_ids,
        decision_ids=result.decision_ids,
        document_ids=result.document_ids,
        summary=result.summary,
    )
    return ResponseSchema(
        status="success",
        message=result.summary,
        data=response.model_dump(mode="json"),
    )

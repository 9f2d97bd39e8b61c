"""Backend function endpoints: streamed chat and structured extraction.

Errors are answered as ``{"error": message}`` with the status of the
exception, so callers can surface them verbatim.
"""

import logging

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from app.core.dependencies import validate_token
from app.domains.assistant.service import AssistantGateway
from app.exceptions.ai import AIServiceError
from app.schemas.functions import (
    ChatFunctionRequest,
    ExtractFunctionRequest,
    ExtractFunctionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/functions",
    tags=["functions"],
    dependencies=[Depends(validate_token)],
)


def _error_response(error: AIServiceError) -> JSONResponse:
    logger.warning("Function error %s: %s", error.status_code, error.message)
    return JSONResponse(status_code=error.status_code, content={"error": error.message})


@router.post("/chat")
async def chat(body: ChatFunctionRequest = Body(...)):
    """Stream a reply to ``userMessage`` using the mode prompt and rendered context."""
    try:
        gateway = AssistantGateway()
        frames = await gateway.open_chat_stream(body.user_message, body.context)
    except AIServiceError as e:
        return _error_response(e)

    return StreamingResponse(
        frames,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/extract")
async def extract(body: ExtractFunctionRequest = Body(...)):
    """Return the structured payload for the requested extraction type."""
    try:
        gateway = AssistantGateway()
        data = await gateway.extract(body.content, body.extraction_type)
    except AIServiceError as e:
        return _error_response(e)

    logger.info("Extracted %s payload with keys %s", body.extraction_type.value, sorted(data))
    return ExtractFunctionResponse(type=body.extraction_type, data=data).model_dump(mode="json")

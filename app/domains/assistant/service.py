"""Assistant gateway: the chat and extraction functions backed by Google Gemini."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from app.core.config import settings
from app.domains.assistant.prompts import (
    EXTRACTION_PROMPTS,
    extraction_user_prompt,
    system_prompt,
)
from app.domains.assistant.tools import EXTRACTION_TOOLS, tool_name
from app.exceptions.ai import (
    AIConfigurationError,
    AIParsingError,
    AIQuotaExceededError,
    AIRateLimitError,
    AIServiceError,
    AIServiceUnavailableError,
    AITimeoutError,
)
from app.schemas.context import StructuredContext
from app.schemas.extraction import ExtractionKind

logger = logging.getLogger(__name__)

DONE_FRAME = "data: [DONE]\n\n"

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
}


def sse_frame(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def delta_frame(text: str) -> str:
    return sse_frame({"choices": [{"delta": {"content": text}}]})


def map_gemini_error(error: Exception) -> AIServiceError:
    """Translate a Gemini SDK failure into the AI exception family."""
    if isinstance(error, AIServiceError):
        return error
    if isinstance(error, asyncio.TimeoutError):
        return AITimeoutError()

    error_msg = str(error).lower()
    if "quota" in error_msg or "billing" in error_msg:
        return AIQuotaExceededError()
    if isinstance(error, google_exceptions.ResourceExhausted) or "429" in error_msg or (
        "rate" in error_msg and "limit" in error_msg
    ):
        return AIRateLimitError()
    if isinstance(error, google_exceptions.DeadlineExceeded):
        return AITimeoutError()
    if isinstance(error, google_exceptions.ServiceUnavailable):
        return AIServiceUnavailableError()
    logger.error("AI service error: %s", error)
    return AIServiceError(f"AI service error: {error}")


class AssistantGateway:
    """Service class for model calls using Google Gemini."""

    def __init__(self, api_key: str | None = None, model_name: str | None = None):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model_name = model_name or settings.gemini_model
        self._initialize_client()

    def _initialize_client(self):
        """Initialize Google Gemini client."""
        if not self.api_key:
            raise AIConfigurationError("Gemini API key not configured")
        genai.configure(api_key=self.api_key)

    async def open_chat_stream(
        self, user_message: str, context: StructuredContext
    ) -> AsyncIterator[str]:
        """
        Start a streamed reply and return its event-stream frames.

        The request is issued before this returns, so refusals such as rate
        limits surface as exceptions rather than as frames.
        """
        model = self._model(system_prompt(context), temperature=settings.gemini_temperature)
        contents = self._chat_contents(user_message, context)

        try:
            stream = await asyncio.wait_for(
                model.generate_content_async(contents, stream=True),
                timeout=settings.ai_request_timeout,
            )
        except Exception as e:
            raise map_gemini_error(e) from e

        logger.info(
            "Chat stream opened in %s mode with %d context messages",
            context.mode,
            len(contents) - 1,
        )
        return self._frames(stream)

    async def extract(self, content: str, kind: ExtractionKind) -> dict[str, Any]:
        """Force the model to call the declaration for ``kind`` and return its arguments."""
        declaration = EXTRACTION_TOOLS[kind]
        model = self._model(EXTRACTION_PROMPTS[kind], temperature=0.2)
        logger.info("Extracting %s from content (%d chars)", kind.value, len(content))

        try:
            response = await asyncio.wait_for(
                model.generate_content_async(
                    extraction_user_prompt(content),
                    tools=[{"function_declarations": [declaration]}],
                    tool_config={
                        "function_calling_config": {
                            "mode": "ANY",
                            "allowed_function_names": [tool_name(kind)],
                        }
                    },
                ),
                timeout=settings.ai_request_timeout,
            )
        except Exception as e:
            raise map_gemini_error(e) from e

        return self._function_call_args(response, tool_name(kind))

    # Private helper methods
    def _model(self, system_instruction: str, temperature: float) -> genai.GenerativeModel:
        return genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=system_instruction,
            safety_settings=SAFETY_SETTINGS,
            generation_config=genai.types.GenerationConfig(
                candidate_count=1,
                max_output_tokens=settings.gemini_max_tokens,
                temperature=temperature,
            ),
        )

    @staticmethod
    def _chat_contents(user_message: str, context: StructuredContext) -> list[dict[str, Any]]:
        """History plus the new turn, with consecutive same-role entries merged.

        A failed turn leaves a user message without a reply; Gemini expects
        user and model turns to alternate.
        """
        turns = []
        if context.include_recent_messages:
            for message in context.recent_messages:
                role = "model" if message.role == "assistant" else "user"
                turns.append((role, message.content))
        turns.append(("user", user_message))

        contents: list[dict[str, Any]] = []
        for role, text in turns:
            if contents and contents[-1]["role"] == role:
                contents[-1]["parts"].append(text)
            else:
                contents.append({"role": role, "parts": [text]})
        return contents

    async def _frames(self, stream) -> AsyncIterator[str]:
        total = 0
        try:
            async for chunk in stream:
                text = _chunk_text(chunk)
                if text:
                    total += len(text)
                    yield delta_frame(text)
        except Exception as e:
            error = map_gemini_error(e)
            logger.error("Chat stream failed after %d characters: %s", total, error.message)
            yield sse_frame({"error": {"message": error.message}})
            return
        logger.info("Chat stream finished with %d characters", total)
        yield DONE_FRAME

    @staticmethod
    def _function_call_args(response, expected_name: str) -> dict[str, Any]:
        for candidate in getattr(response, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                call = getattr(part, "function_call", None)
                if call and getattr(call, "name", None) == expected_name:
                    args = _to_plain(call.args)
                    if not isinstance(args, dict):
                        raise AIParsingError("Extraction arguments were not an object")
                    return args
        raise AIParsingError("No extraction result from AI")


def _chunk_text(chunk) -> str:
    candidates = getattr(chunk, "candidates", None) or []
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    return "".join(getattr(part, "text", "") or "" for part in getattr(content, "parts", None) or [])


def _to_plain(value: Any) -> Any:
    """Convert proto map/repeated composites from function-call args into dicts and lists."""
    if isinstance(value, (str, bytes, int, float, bool)) or value is None:
        return value
    if hasattr(value, "items"):
        return {key: _to_plain(item) for key, item in value.items()}
    if hasattr(value, "__iter__"):
        return [_to_plain(item) for item in value]
    return value

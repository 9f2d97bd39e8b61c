"""HTTP client for the backend chat and extraction functions."""

import logging
from typing import Any

import httpx

from app.core.config import settings
from app.exceptions.ai import (
    AIParsingError,
    AIServiceError,
    AIServiceUnavailableError,
    AITimeoutError,
    map_ai_status,
)
from app.schemas.context import StructuredContext

logger = logging.getLogger(__name__)


class FunctionsClient:
    """Calls ``/chat`` and ``/extract`` on the functions base URL with a bearer key.

    Error statuses are mapped to the AI exception family without retrying:
    429 is a rate limit, 402 means exhausted credits.
    """

    def __init__(
        self,
        http: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
    ):
        self.base_url = (base_url or settings.functions_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.functions_api_key
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=settings.ai_request_timeout)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def open_chat_stream(
        self, user_message: str, context: StructuredContext
    ) -> httpx.Response:
        """Start a streamed chat completion; the caller must close the response."""
        request = self.http.build_request(
            "POST",
            f"{self.base_url}/chat",
            json={"userMessage": user_message, "context": context.to_wire()},
            headers=self._headers(),
        )
        try:
            response = await self.http.send(request, stream=True)
        except httpx.HTTPError as e:
            raise transport_error(e) from e

        if response.is_success:
            return response

        try:
            await response.aread()
        finally:
            await response.aclose()
        raise self._status_error(response)

    async def extract(self, content: str, extraction_type: str) -> dict[str, Any]:
        """Run a structured extraction and return the ``{type, data}`` body."""
        try:
            response = await self.http.post(
                f"{self.base_url}/extract",
                json={"content": content, "extractionType": extraction_type},
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise transport_error(e) from e

        if not response.is_success:
            raise self._status_error(response)

        try:
            body = response.json()
        except ValueError as e:
            raise AIParsingError("Extraction response was not valid JSON") from e
        if not isinstance(body, dict):
            raise AIParsingError("Extraction response was not a JSON object")
        return body

    # Private helper methods
    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @staticmethod
    def _status_error(response: httpx.Response) -> AIServiceError:
        message = None
        try:
            body = response.json()
            if isinstance(body, dict):
                message = body.get("error")
        except ValueError:
            message = None
        logger.warning(
            "Backend function %s returned %s: %s", response.url, response.status_code, message
        )
        return map_ai_status(response.status_code, message)


def transport_error(error: httpx.HTTPError) -> AIServiceError:
    """Map an httpx transport failure to the AI exception family."""
    logger.error("Backend function transport error: %s", error)
    if isinstance(error, httpx.TimeoutException):
        return AITimeoutError()
    if isinstance(error, httpx.ConnectError):
        return AIServiceUnavailableError()
    return AIServiceError(f"AI service request failed: {error}")

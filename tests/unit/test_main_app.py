"""
Unit tests for Main Application module.

This module contains unit tests for the FastAPI application factory, the
request ID middleware, exception handlers and the informational endpoints.
"""

import re
import tomllib
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi import status
from httpx import AsyncClient

from app.core.config import settings
from app.domains.chat.session import SendRegistry
from app.main import create_app
from app.services.functions_client import FunctionsClient
from app.shared.cache import EntityCache


class TestAppCreation:
    """Test cases for FastAPI application creation."""

    def test_create_app_returns_fastapi_instance(self):
        test_app = create_app()

        assert test_app.title == "Project Knowledge API"
        assert test_app.version == "1.0.0"

    def test_app_state(self):
        """Test that shared state is created explicitly on the application."""
        test_app = create_app()

        assert isinstance(test_app.state.cache, EntityCache)
        assert test_app.state.cache.max_entities == settings.cache_max_entities
        assert isinstance(test_app.state.send_registry, SendRegistry)
        assert isinstance(test_app.state.functions_client, FunctionsClient)

    def test_routes_registered(self):
        paths = {route.path for route in create_app().routes}

        assert "/api/projects/{project_id}/conversations" in paths
        assert "/api/conversations/{conversation_id}/messages" in paths
        assert "/api/conversations/{conversation_id}/extract" in paths
        assert "/api/functions/chat" in paths
        assert "/api/functions/extract" in paths
        assert "/health" in paths


class TestEndpoints:
    """Test cases for root and health endpoints."""

    @pytest.mark.asyncio
    async def test_root(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Project Knowledge API"

    @pytest.mark.asyncio
    async def test_request_id_header(self, client: AsyncClient):
        response = await client.get("/")

        assert len(response.headers["X-Request-ID"]) == 36

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] in {"healthy", "degraded"}
        assert set(data["services"]) == {"database", "ai_service"}
        assert data["config"]["health_thresholds"] == [20, 40, 60]

    @pytest.mark.asyncio
    async def test_health_reports_ai_status(self, client: AsyncClient):
        with patch("app.main.settings.gemini_api_key", "key"):
            response = await client.get("/health")

        assert response.json()["services"]["ai_service"] == "configured"


class TestExceptionHandlers:
    """Test cases for the error envelope."""

    @pytest.mark.asyncio
    async def test_not_found_envelope(self, client: AsyncClient):
        response = await client.get("/no-such-route")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        data = response.json()
        assert data["status"] == "error"
        assert data["error_code"] == "HTTP_ERROR"
        assert data["request_id"] is not None

    @pytest.mark.asyncio
    async def test_validation_envelope(self, client: AsyncClient):
        response = await client.get("/api/conversations/not-a-uuid")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = response.json()
        assert data["message"] == "Validation error"
        assert data["details"][0]["loc"] == ["path", "conversation_id"]


class TestPackaging:
    """Test cases for declared distribution dependencies."""

    def test_directly_imported_frameworks_declared(self):
        """Test that frameworks imported by the app are declared, not only pulled in transitively."""
        pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
        with pyproject.open("rb") as f:
            dependencies = tomllib.load(f)["project"]["dependencies"]

        names = {re.split(r"[<>=\[ ]", dependency, maxsplit=1)[0] for dependency in dependencies}
        assert {"fastapi", "starlette", "httpx", "python-json-logger"} <= names

# app/core/dependencies.py
import logging
import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.database import get_db
from app.domains.chat.session import SendRegistry
from app.services.functions_client import FunctionsClient
from app.shared.cache import EntityCache

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

__all__ = [
    "get_db",
    "validate_token",
    "get_cache",
    "get_send_registry",
    "get_functions_client",
]


async def validate_token(
    token: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """Check the bearer credential when a functions API key is configured.

    The credential is otherwise treated as an opaque pass-through.

    Returns:
        str | None: The presented credential, if any

    Raises:
        HTTPException: If a key is configured and the credential is missing or wrong
    """
    expected = settings.functions_api_key
    presented = token.credentials if token else None

    if not expected:
        return presented

    if not presented:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token is required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not secrets.compare_digest(presented, expected):
        logger.warning("Rejected request with invalid bearer credential")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return presented


def get_cache(request: Request) -> EntityCache:
    """Application-wide entity cache."""
    return request.app.state.cache


def get_send_registry(request: Request) -> SendRegistry:
    """Application-wide single-flight registry for chat sends."""
    return request.app.state.send_registry


def get_functions_client(request: Request) -> FunctionsClient:
    """Client for the backend chat and extraction functions."""
    return request.app.state.functions_client

# ruff: noqa: F403, F401
"""Schemas package initialization."""

# Import all schemas to ensure they're registered
from .base import *
from .context import *
from .conversation import *
from .extraction import *
from .functions import *

# Rebuild models after all schemas are loaded (conversation schemas use postponed annotations)
from .conversation import ConversationDetailResponse, ConversationListResponse

ConversationDetailResponse.model_rebuild()
ConversationListResponse.model_rebuild()

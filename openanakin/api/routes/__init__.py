"""API routes for the relay."""

from .chat import chat_completions, extract_bearer, handle_chat_request
from .models import health, list_models
from .usage import router as usage_router

__all__ = [
    "chat_completions",
    "extract_bearer",
    "handle_chat_request",
    "health",
    "list_models",
    "usage_router",
]

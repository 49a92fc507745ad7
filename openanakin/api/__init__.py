"""API module for the relay."""

from .routes import chat_completions, health, list_models, usage_router

__all__ = [
    "chat_completions",
    "health",
    "list_models",
    "usage_router",
]

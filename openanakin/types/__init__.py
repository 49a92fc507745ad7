"""Type definitions for the relay."""

from .chat import (
    AnakinMessageRequest,
    AnakinMessageResponse,
    AssistantMessage,
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    Choice,
    Delta,
    Usage,
)

__all__ = [
    "AnakinMessageRequest",
    "AnakinMessageResponse",
    "AssistantMessage",
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "Choice",
    "Delta",
    "Usage",
]

"""Wire types for the OpenAI-compatible surface and the Anakin backend.

Types are separated into:
- OpenAI-compatible types: what clients send and receive
- Anakin types: what the chatbot messages API accepts and returns
"""

from typing_extensions import TypedDict


# =============================================================================
# OpenAI-Compatible Types
# =============================================================================


class ChatMessage(TypedDict):
    """A message in a chat conversation (OpenAI format).

    Attributes:
        role: Author of the message ("system", "user", "assistant", ...).
        content: Text content of the message.
    """
    role: str
    content: str


class ChatCompletionRequest(TypedDict, total=False):
    """Inbound body of ``POST /v1/chat/completions``."""
    model: str
    messages: list[ChatMessage]
    stream: bool


class Delta(TypedDict):
    """A streamed content delta."""
    content: str


class AssistantMessage(TypedDict):
    role: str
    content: str


class Choice(TypedDict, total=False):
    """A choice in a chat completion response (OpenAI format).

    Attributes:
        index: Zero-based index of this choice. Always 0 here.
        delta: The incremental content for streaming responses.
        message: The complete message for non-streaming responses.
        finish_reason: Why generation stopped. Only set on full completions.
    """
    index: int
    delta: Delta
    message: AssistantMessage
    finish_reason: str


class Usage(TypedDict):
    """Token usage. The backend does not report counts, so all are zero."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletionChunk(TypedDict):
    """A streamed chunk of a chat completion response (OpenAI format).

    Attributes:
        id: Identifier of the chunk (``chatcmpl-<uuid>``).
        object: Always "chat.completion.chunk".
        created: Unix timestamp of when the chunk was created.
        model: Model name the client requested.
        choices: Exactly one choice carrying a delta.
    """
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]


class ChatCompletionResponse(TypedDict):
    """A complete (non-streaming) chat completion response (OpenAI format)."""
    id: str
    object: str
    created: int
    model: str
    usage: Usage
    choices: list[Choice]


# =============================================================================
# Anakin Types
# =============================================================================


class AnakinMessageRequest(TypedDict):
    """Body of ``POST /v1/chatbots/{app_id}/messages``.

    Attributes:
        content: The whole conversation flattened to ``role: content`` lines.
        stream: Whether the backend should answer with an event stream.
    """
    content: str
    stream: bool


class AnakinMessageResponse(TypedDict):
    """Non-streaming reply, and the payload of every streamed ``data:`` frame."""
    content: str

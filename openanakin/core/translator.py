"""Translation between the OpenAI chat-completions format and Anakin messages.

Request direction: the OpenAI ``messages`` array is flattened into the single
``content`` string the Anakin chatbot API accepts.

Response direction: every streamed Anakin payload ``{"content": "..."}``
becomes one ``chat.completion.chunk``; a blocking reply becomes a full
``chat.completion`` object.
"""

import json
import logging
import time
import uuid
from typing import Any, Iterable, Mapping, Optional

from ..types import (
    AnakinMessageRequest,
    ChatCompletionChunk,
    ChatCompletionResponse,
)

logger = logging.getLogger("openanakin")

CHUNK_OBJECT = "chat.completion.chunk"
COMPLETION_OBJECT = "chat.completion"


def generate_completion_id() -> str:
    return f"chatcmpl-{uuid.uuid4()}"


def flatten_messages(messages: Iterable[Mapping[str, Any]]) -> str:
    """Render the conversation as ``role: content`` lines in order."""
    parts: list[str] = []
    for message in messages:
        role = message.get("role") or ""
        content = message.get("content") or ""
        parts.append(f"{role}: {content}\n")
    return "".join(parts).strip()


def build_anakin_request(
    messages: Iterable[Mapping[str, Any]], stream: bool
) -> AnakinMessageRequest:
    """Build the outbound request body for the chatbot messages API."""
    return {"content": flatten_messages(messages), "stream": stream}


def decode_anakin_content(payload: str) -> Optional[str]:
    """Extract ``content`` from an Anakin payload.

    Returns None when the payload is not a JSON object or ``content`` is not a
    string. A missing ``content`` decodes to an empty string.
    """
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    content = data.get("content", "")
    if content is None:
        return ""
    if not isinstance(content, str):
        return None
    return content


def build_chunk(
    content: str, model: str, chunk_id: Optional[str] = None
) -> ChatCompletionChunk:
    return {
        "id": chunk_id or generate_completion_id(),
        "object": CHUNK_OBJECT,
        "created": int(time.time()),
        "model": model,
        "choices": [{"index": 0, "delta": {"content": content}}],
    }


def translate_payload(
    payload: str, model: str, chunk_id: Optional[str] = None
) -> Optional[str]:
    """Translate one streamed Anakin payload into serialized chunk JSON.

    Args:
        payload: Raw text after the ``data: `` prefix.
        model: Model name to report back to the client.
        chunk_id: Identifier for the chunk. A fresh one is generated when
            omitted, so every chunk carries its own id.

    Returns:
        The chunk as a JSON string, or None when the payload is malformed or
        cannot be serialized. Malformed payloads are not errors.
    """
    content = decode_anakin_content(payload)
    if content is None:
        logger.debug("Dropping malformed upstream payload: %r", payload[:200])
        return None
    try:
        return json.dumps(build_chunk(content, model, chunk_id), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.debug("Dropping chunk that failed to serialize: %s", exc)
        return None


def build_completion_response(content: str, model: str) -> ChatCompletionResponse:
    """Wrap a blocking Anakin reply as a full chat completion."""
    return {
        "id": generate_completion_id(),
        "object": COMPLETION_OBJECT,
        "created": int(time.time()),
        "model": model,
        "usage": {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0,
        },
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }

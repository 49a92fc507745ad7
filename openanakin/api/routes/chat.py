"""OpenAI-compatible chat completions endpoint backed by Anakin."""

import json
import logging
from functools import partial
from typing import Any, Callable, Mapping, cast

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask, BackgroundTasks

from ...client import AnakinClient
from ...core import (
    InvalidRequestError,
    ModelCatalog,
    RelayStreamingResponse,
    StreamSession,
    build_completion_response,
)
from ...logging import mask_key
from ...settings import AnakinSettings, RelaySettings
from ...types import ChatCompletionRequest
from ...usage_metrics import USAGE_COUNTERS

logger = logging.getLogger("openanakin")

BEARER_PREFIX = "Bearer "


def _attach_finish_task(response: Response, finish: Callable[[], None]) -> None:
    existing = getattr(response, "background", None)
    if existing is None:
        response.background = BackgroundTask(finish)
        return

    tasks = BackgroundTasks()
    if isinstance(existing, BackgroundTasks):
        for task in existing.tasks:
            tasks.add_task(task.func, *task.args, **task.kwargs)
    else:
        tasks.add_task(existing.func, *existing.args, **existing.kwargs)
    tasks.add_task(finish)
    response.background = tasks


def extract_bearer(authorization: str | None) -> str:
    """Return the credential from an ``Authorization`` header value."""
    if not authorization:
        return ""
    if authorization.startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):]
    return authorization


def _parse_messages(raw: Any) -> list[dict[str, str]]:
    if not isinstance(raw, list) or not raw:
        raise InvalidRequestError("messages must be a non-empty list")
    messages: list[dict[str, str]] = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise InvalidRequestError(f"messages[{index}] must be an object")
        role = item.get("role")
        content = item.get("content", "")
        if content is None:
            content = ""
        if not isinstance(role, str) or not isinstance(content, str):
            raise InvalidRequestError(
                f"messages[{index}] must have string role and content"
            )
        messages.append({"role": role, "content": content})
    return messages


def _single_chunk_runner(content: str) -> Callable[[StreamSession], Any]:
    async def run(session: StreamSession) -> None:
        await session.on_event(json.dumps({"content": content}, ensure_ascii=False))
        await session.on_complete()

    return run


async def handle_chat_request(request: Request) -> Response:
    """Validate an OpenAI chat request and relay it to Anakin.

    Validation failures and unknown models are rejected before any outbound
    call. Streaming requests return a :class:`RelayStreamingResponse` that
    stays open until its session signals completion.
    """
    body = await request.body()
    try:
        payload = json.loads(body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.error(f"Invalid JSON payload: {exc}")
        raise InvalidRequestError("invalid request body") from exc

    if not isinstance(payload, Mapping):
        logger.error("Payload must be a JSON object")
        raise InvalidRequestError("request body must be a JSON object")
    body_fields = cast(ChatCompletionRequest, payload)

    model = body_fields.get("model")
    if not isinstance(model, str) or not model:
        logger.error("Request missing model name")
        raise InvalidRequestError("model is required")

    messages = _parse_messages(body_fields.get("messages"))

    stream = body_fields.get("stream", False)
    if stream is None:
        stream = False
    if not isinstance(stream, bool):
        raise InvalidRequestError("stream must be a boolean")

    state = request.app.state
    catalog: ModelCatalog = state.catalog
    client: AnakinClient = state.anakin_client
    relay: RelaySettings = state.relay_settings
    anakin: AnakinSettings = state.anakin_settings

    # Unknown models fail before anything is sent upstream
    catalog.app_id(model)

    api_key = extract_bearer(request.headers.get("authorization")) or anakin.api_key
    logger.info(
        "Processing request for model %s, stream=%s, messages=%d, key=%s",
        model,
        stream,
        len(messages),
        mask_key(api_key),
    )

    if not stream:
        content = await client.send_message(api_key, model, messages)
        return JSONResponse(build_completion_response(content, model))

    if model in relay.non_streaming_models:
        logger.info("Model %s does not stream natively; serving a single chunk", model)
        content = await client.send_message(api_key, model, messages)
        runner = _single_chunk_runner(content)
    else:
        runner = partial(client.stream_message, api_key, model, messages)

    return RelayStreamingResponse(
        model,
        runner,
        stable_stream_id=relay.stable_stream_id,
        error_format=relay.stream_error_format,
    )


async def chat_completions(request: Request) -> Response:
    """Chat completions endpoint - OpenAI compatible.

    POST /v1/chat/completions
    """
    logger.info("Received chat completions request")
    tracker = USAGE_COUNTERS.start_request()
    try:
        response = await handle_chat_request(request)
    except Exception:
        tracker.finish()
        raise
    if isinstance(response, RelayStreamingResponse):
        tracker.mark_streaming()
        _attach_finish_task(response, tracker.finish)
        return response
    tracker.finish()
    return response

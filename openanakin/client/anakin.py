"""HTTP client for the Anakin chatbot messages API."""

import asyncio
import logging
from typing import Any, Iterable, Mapping, Optional, cast

import httpx

from ..core.catalog import ModelCatalog
from ..core.exceptions import ClientDisconnected, UpstreamError
from ..core.session import StreamSession, drive_session
from ..core.sse import iter_raw_events
from ..core.translator import build_anakin_request
from ..logging import mask_key
from ..settings import AnakinSettings
from ..types import AnakinMessageResponse

logger = logging.getLogger("openanakin")

API_VERSION_HEADER = "X-Anakin-Api-Version"
MAX_ERROR_BODY_CHARS = 2000


def format_httpx_error(exc: httpx.HTTPError, timeout: Optional[float] = None) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    try:
        request = exc.request
    except RuntimeError:
        request = None
    if request is not None:
        parts.append(f"request={request.method} {request.url}")

    if isinstance(exc, httpx.TimeoutException) and timeout:
        parts.append(f"timeout={timeout}s")

    return "; ".join(parts)


def _status_error(resp: httpx.Response, body: bytes) -> UpstreamError:
    text = body.decode("utf-8", errors="replace")[:MAX_ERROR_BODY_CHARS]
    status = f"{resp.status_code} {resp.reason_phrase}".strip()
    return UpstreamError(f"request failed: {status}, body: {text}", status_code=resp.status_code)


class AnakinClient:
    """Sends flattened conversations to Anakin, blocking or streaming.

    Args:
        catalog: Model name -> app id lookup.
        settings: Backend URL, API version and timeouts.
        http_client: Shared client. One is created (and owned) when omitted.
        transport: Optional transport for the owned client (tests).
    """

    def __init__(
        self,
        catalog: ModelCatalog,
        settings: AnakinSettings,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.catalog = catalog
        self.settings = settings
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.timeout, connect=settings.connect_timeout),
            transport=transport,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def build_url(self, app_id: int) -> str:
        return f"{self.settings.base_url}/v1/chatbots/{app_id}/messages"

    def build_headers(self, api_key: str) -> dict[str, str]:
        headers = {
            API_VERSION_HEADER: self.settings.api_version,
            "Content-Type": "application/json",
        }
        # An empty credential would produce "Bearer ", an illegal header value.
        api_key = (api_key or "").strip()
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _build_request(
        self,
        api_key: str,
        model: str,
        messages: Iterable[Mapping[str, Any]],
        stream: bool,
    ) -> httpx.Request:
        app_id = self.catalog.app_id(model)
        if stream:
            timeout = httpx.Timeout(
                connect=self.settings.connect_timeout,
                read=self.settings.stream_read_timeout,
                write=self.settings.timeout,
                pool=self.settings.timeout,
            )
        else:
            timeout = httpx.Timeout(self.settings.timeout, connect=self.settings.connect_timeout)
        url = self.build_url(app_id)
        logger.debug(
            "Building %s request to %s (model=%s, key=%s)",
            "streaming" if stream else "blocking",
            url,
            model,
            mask_key(api_key),
        )
        return self._client.build_request(
            "POST",
            url,
            headers=self.build_headers(api_key),
            json=build_anakin_request(messages, stream),
            timeout=timeout,
        )

    async def send_message(
        self, api_key: str, model: str, messages: Iterable[Mapping[str, Any]]
    ) -> str:
        """Make one blocking call and return the reply content.

        Raises:
            ModelNotFoundError: The model has no app id.
            UpstreamError: Transport failure, non-200 status or bad reply body.
        """
        request = self._build_request(api_key, model, messages, stream=False)
        try:
            resp = await self._client.send(request)
        except httpx.HTTPError as exc:
            logger.error("Anakin request to %s failed: %s", request.url, exc)
            raise UpstreamError(
                f"request failed: {format_httpx_error(exc, self.settings.timeout)}"
            ) from exc

        if resp.status_code != 200:
            logger.warning("Anakin returned status %s for model %s", resp.status_code, model)
            raise _status_error(resp, resp.content)

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError(f"failed to parse response: {exc}") from exc
        if not isinstance(data, dict):
            raise UpstreamError("failed to parse response: expected a JSON object")
        reply = cast(AnakinMessageResponse, data)
        content = reply.get("content", "")
        if content is None:
            return ""
        if not isinstance(content, str):
            raise UpstreamError("failed to parse response: content is not a string")
        return content

    async def stream_message(
        self,
        api_key: str,
        model: str,
        messages: Iterable[Mapping[str, Any]],
        session: StreamSession,
    ) -> None:
        """Open the upstream event stream and pump it into ``session``.

        Every outcome ends in exactly one of ``session.on_complete`` or
        ``session.on_error``; nothing is raised to the caller except task
        cancellation, which is reported to the session first.
        """
        resp: Optional[httpx.Response] = None
        try:
            request = self._build_request(api_key, model, messages, stream=True)
            try:
                resp = await self._client.send(request, stream=True)
            except httpx.HTTPError as exc:
                logger.error("Anakin stream request to %s failed: %s", request.url, exc)
                raise UpstreamError(
                    f"request failed: {format_httpx_error(exc, self.settings.timeout)}"
                ) from exc

            if resp.status_code != 200:
                logger.warning(
                    "Anakin stream for model %s returned status %s", model, resp.status_code
                )
                raise _status_error(resp, await resp.aread())

            logger.info("Streaming from Anakin for model %s (stream %s)", model, session.request_id)
            await drive_session(iter_raw_events(resp.aiter_lines()), session)
        except asyncio.CancelledError:
            logger.info("Stream %s cancelled, closing upstream", session.request_id)
            await session.on_error(ClientDisconnected())
            raise
        except Exception as exc:
            await session.on_error(exc)
        finally:
            if resp is not None:
                await resp.aclose()

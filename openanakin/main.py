"""FastAPI application for the OpenAnakin relay."""

import logging
import socket
import time
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api import chat_completions, health, list_models, usage_router
from .client import AnakinClient
from .config_loader import load_config
from .core import ModelCatalog, ProxyError
from .settings import AnakinSettings, RelaySettings, ServerSettings, load_models_section

logger = logging.getLogger("openanakin")


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    """Render relay errors as ``{"error": message}``."""
    if exc.status_code >= 500:
        logger.error(f"Request to {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"Rejected request to {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def create_app(
    config: Optional[dict] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the relay application.

    Args:
        config: Parsed configuration. Loaded with :func:`load_config` when omitted.
        transport: Optional httpx transport for outbound calls (tests, in-process
            backends).

    Returns:
        The configured FastAPI application instance.
    """
    if config is None:
        config = load_config()

    catalog = ModelCatalog(load_models_section(config))
    anakin_settings = AnakinSettings.from_config(config)
    relay_settings = RelaySettings.from_config(config)
    server_settings = ServerSettings.from_config(config)

    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(anakin_settings.timeout, connect=anakin_settings.connect_timeout),
        transport=transport,
    )
    anakin_client = AnakinClient(catalog, anakin_settings, http_client=http_client)

    @asynccontextmanager
    async def lifespan(app_: FastAPI):
        logger.info("OpenAnakin relay starting up...")
        logger.info("Configured bind address %s:%s", server_settings.host, server_settings.port)
        if server_settings.host == "0.0.0.0":
            hostname = socket.gethostname()
            logger.info("Reachable on local network at http://%s:%s", hostname, server_settings.port)
        logger.info("Backend: %s (api version %s)", anakin_settings.base_url, anakin_settings.api_version)
        logger.info(f"Available models: {catalog.names()}")
        yield
        await http_client.aclose()
        logger.info("OpenAnakin relay shut down")

    app = FastAPI(title="OpenAnakin Relay", lifespan=lifespan)
    app.state.catalog = catalog
    app.state.anakin_settings = anakin_settings
    app.state.relay_settings = relay_settings
    app.state.server_settings = server_settings
    app.state.http_client = http_client
    app.state.anakin_client = anakin_client
    app.state.started_at = int(time.time())

    app.add_exception_handler(ProxyError, proxy_error_handler)

    app.post("/v1/chat/completions")(chat_completions)
    app.get("/v1/models")(list_models)
    app.get("/health")(health)
    app.include_router(usage_router)

    logger.info(f"Relay application created with {len(catalog)} models")
    return app


__all__ = ["create_app", "proxy_error_handler"]

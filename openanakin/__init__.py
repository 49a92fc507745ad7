"""OpenAnakin - OpenAI-compatible relay for the Anakin chatbot API

Accepts OpenAI chat-completion requests, forwards them to Anakin chatbot apps
and translates the replies (blocking or streamed) back into the OpenAI format.

This module provides:
- create_app: FastAPI application factory
- AnakinClient: outbound client for the chatbot messages API
- StreamSession: single-fire bridge between an upstream stream and a client
- ModelCatalog: model name -> Anakin app id lookup

Example:
    >>> from openanakin import create_app
    >>> import uvicorn
    >>> uvicorn.run(create_app(), host="0.0.0.0", port=8080)
"""

from .client import AnakinClient
from .config_loader import load_config
from .core import ModelCatalog, ProxyError, StreamSession
from .logging import logger, setup_logging
from .main import create_app

__all__ = [
    "AnakinClient",
    "create_app",
    "load_config",
    "logger",
    "ModelCatalog",
    "ProxyError",
    "setup_logging",
    "StreamSession",
]

"""Typed settings parsed from the loaded configuration dictionary."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

from .core.exceptions import ConfigurationError
from .core.session import ERROR_FORMAT_LEGACY, ERROR_FORMATS

logger = logging.getLogger("openanakin")

DEFAULT_BASE_URL = "https://api.anakin.ai"
DEFAULT_API_VERSION = "2024-05-06"
DEFAULT_NON_STREAMING_MODELS = ("o1-preview", "o1-mini")


def _get(cfg: Any, *keys: str):
    cur = cfg
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _to_int(value) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_str(value) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _to_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_bool(value) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    value_str = str(value).strip().lower()
    if value_str in {"1", "true", "yes", "on"}:
        return True
    if value_str in {"0", "false", "no", "off"}:
        return False
    return None


@dataclass(frozen=True)
class AnakinSettings:
    base_url: str = DEFAULT_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    api_key: str = ""
    timeout: float = 30.0
    connect_timeout: float = 5.0
    stream_read_timeout: float = 300.0

    @classmethod
    def from_config(cls, cfg: dict) -> "AnakinSettings":
        section = _get(cfg, "anakin") or {}
        return cls(
            base_url=(_to_str(section.get("base_url")) or DEFAULT_BASE_URL).rstrip("/"),
            api_version=_to_str(section.get("api_version")) or DEFAULT_API_VERSION,
            api_key=_to_str(section.get("api_key")) or "",
            timeout=_to_float(section.get("timeout")) or 30.0,
            connect_timeout=_to_float(section.get("connect_timeout")) or 5.0,
            stream_read_timeout=_to_float(section.get("stream_read_timeout")) or 300.0,
        )


@dataclass(frozen=True)
class RelaySettings:
    non_streaming_models: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_NON_STREAMING_MODELS)
    )
    stable_stream_id: bool = False
    stream_error_format: str = ERROR_FORMAT_LEGACY

    @classmethod
    def from_config(cls, cfg: dict) -> "RelaySettings":
        section = _get(cfg, "relay") or {}
        raw_models = section.get("non_streaming_models")
        if raw_models is None:
            non_streaming = frozenset(DEFAULT_NON_STREAMING_MODELS)
        elif isinstance(raw_models, (list, tuple)):
            non_streaming = frozenset(str(name) for name in raw_models)
        else:
            raise ConfigurationError("relay.non_streaming_models must be a list")

        error_format = (_to_str(section.get("stream_error_format")) or ERROR_FORMAT_LEGACY).lower()
        if error_format not in ERROR_FORMATS:
            raise ConfigurationError(
                f"relay.stream_error_format must be one of {sorted(ERROR_FORMATS)}"
            )
        return cls(
            non_streaming_models=non_streaming,
            stable_stream_id=bool(_to_bool(section.get("stable_stream_id"))),
            stream_error_format=error_format,
        )


@dataclass(frozen=True)
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 8080

    @classmethod
    def from_config(cls, cfg: dict) -> "ServerSettings":
        section = _get(cfg, "server") or {}
        host = _to_str(section.get("host")) or "0.0.0.0"
        port = _to_int(section.get("port")) or 8080

        # Environment variables take priority over the config file
        host = os.getenv("OPENANAKIN_HOST", host)
        env_port = _to_int(os.getenv("OPENANAKIN_PORT"))
        if env_port is not None:
            port = env_port
        return cls(host=host, port=port)


def load_models_section(cfg: dict) -> dict:
    models = _get(cfg, "models")
    if models is None:
        logger.warning("No models configured; every chat request will be rejected")
        return {}
    if not isinstance(models, dict):
        raise ConfigurationError("models must be a mapping of model name to app id")
    return models

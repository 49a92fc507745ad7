"""Relay configuration: one YAML file plus optional ``.env`` overrides."""

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import dotenv_values

logger = logging.getLogger("openanakin")

CONFIG_ENV_VAR = "OPENANAKIN_CONFIG"
DEFAULT_CONFIG_PATH = "configs/config.yaml"
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# ${NAME} or $NAME
_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def resolve_config_path(path: str) -> Path:
    """Anchor a relative config path at the project root."""
    candidate = Path(path)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def read_dotenv(config_path: Path) -> dict[str, str]:
    """Values from the ``.env`` next to the config file; ``os.environ`` is untouched."""
    env_file = config_path.with_name(".env")
    if not env_file.exists():
        return {}
    logger.info(f"Loading environment variables from {env_file}")
    return {k: v for k, v in dotenv_values(env_file).items() if v is not None}


def load_config(path: str | None = None, substitute_env: bool = True) -> dict:
    """Read the relay configuration.

    Args:
        path: Config file. Defaults to ``$OPENANAKIN_CONFIG`` or
            ``configs/config.yaml`` under the project root.
        substitute_env: Expand ``${VAR}`` / ``$VAR`` placeholders in string
            values, looking in the sibling ``.env`` first and then the
            process environment.

    Raises:
        RuntimeError: The file is missing or does not hold a mapping.
    """
    config_path = resolve_config_path(path or os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    logger.info(f"Loading configuration from {config_path}")

    if not config_path.exists():
        logger.error(f"Config file not found: {config_path}")
        raise RuntimeError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise RuntimeError(f"Config file {config_path} must contain a mapping")

    if substitute_env:
        data = expand_placeholders(data, read_dotenv(config_path))
    return data


def expand_placeholders(value: Any, dotenv: Mapping[str, str] | None = None) -> Any:
    """Expand placeholders in every string nested inside ``value``.

    A placeholder whose variable is set nowhere is kept verbatim.
    """
    dotenv = dotenv or {}

    def lookup(match: re.Match) -> str:
        name = match.group(1) or match.group(2)
        found = dotenv.get(name, os.environ.get(name))
        if found is None:
            logger.warning(f"Config placeholder ${name} is not set; keeping it literally")
            return match.group(0)
        return found

    if isinstance(value, str):
        return _PLACEHOLDER.sub(lookup, value)
    if isinstance(value, dict):
        return {key: expand_placeholders(item, dotenv) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_placeholders(item, dotenv) for item in value]
    return value

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .settings import Settings

logger = logging.getLogger(__name__)

ENV_PREFIX = "INDRESERVE_"

# short env names for the values people most often set outside the file
ENV_ALIASES = {
    "API_KEY": ["client", "api_key"],
    "API_SECRET": ["client", "api_secret"],
    "SERVER": ["client", "server"],
    "LOG_LEVEL": ["logging", "level"],
}

# read verbatim, never YAML-parsed (a numeric-looking key must stay a string)
_RAW_KEYS = {"api_key", "api_secret", "server", "user_agent"}


def _deep_set(obj: dict[str, Any], path: list[str], value: Any) -> None:
    cur: dict[str, Any] = obj
    for key in path[:-1]:
        nxt = cur.get(key)
        if not isinstance(nxt, dict):
            nxt = {}
            cur[key] = nxt
        cur = nxt
    cur[path[-1]] = value


def _parse_env_value(path: list[str], raw: str) -> Any:
    if path[-1] in _RAW_KEYS:
        return raw
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def _apply_env_overrides(data: dict[str, Any], *, prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Apply ``INDRESERVE_<SECTION>__<KEY>`` and the short aliases on top of file data.

    Nested names win over aliases when both are set.
    """
    merged: dict[str, Any] = dict(data)
    nested: list[tuple[list[str], str]] = []

    for key, raw_value in os.environ.items():
        if not key.startswith(prefix):
            continue

        remainder = key[len(prefix) :]
        if remainder == "CONFIG":
            continue
        if remainder in ENV_ALIASES:
            path = ENV_ALIASES[remainder]
            _deep_set(merged, path, _parse_env_value(path, raw_value))
            continue

        path = [p.lower() for p in remainder.split("__") if p]
        if len(path) < 2:
            logger.debug("ignoring unrecognised environment variable %s", key)
            continue
        nested.append((path, raw_value))

    for path, raw_value in nested:
        _deep_set(merged, path, _parse_env_value(path, raw_value))

    return merged


def _check_credentials(settings: Settings) -> None:
    client = settings.client
    if (client.api_key is None) != (client.api_secret is None):
        missing = "api_secret" if client.api_secret is None else "api_key"
        logger.warning("client.%s is not set; private endpoints will fail with ConfigurationError", missing)


def load_settings(config_path: str | Path | None = None) -> Settings:
    if config_path is None:
        config_path = os.environ.get(f"{ENV_PREFIX}CONFIG", "config.yml")

    path = Path(config_path)
    if path.exists():
        raw = path.read_text(encoding="utf-8")
        loaded = yaml.safe_load(raw)
        if loaded is None:
            data: dict[str, Any] = {}
        elif isinstance(loaded, dict):
            data = loaded
        else:
            raise ValueError(f"Config root must be a mapping, got: {type(loaded)!r}")
    else:
        logger.debug("config file %s not found, using defaults and environment", path)
        data = {}

    data = _apply_env_overrides(data)

    try:
        settings = Settings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    _check_credentials(settings)
    return settings

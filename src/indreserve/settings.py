from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator

from .api.request import DEFAULT_SERVER, DEFAULT_TIMEOUT_MS, DEFAULT_USER_AGENT


def _check_level(value: str) -> str:
    name = str(value).upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ValueError(f"unknown log level: {value}")
    return name


class ClientSettings(BaseModel):
    api_key: SecretStr | None = None
    api_secret: SecretStr | None = None
    server: str = DEFAULT_SERVER
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0, le=300_000)
    user_agent: str = DEFAULT_USER_AGENT

    model_config = {"extra": "forbid", "frozen": True}

    @field_validator("server")
    @classmethod
    def normalize_server(cls, value: str) -> str:
        # request URLs are built as <server>/Private/<action>
        if not value.startswith(("https://", "http://")):
            raise ValueError(f"server must be an http(s) URL, got: {value!r}")
        return value.rstrip("/")

    @property
    def has_credentials(self) -> bool:
        return self.api_key is not None and self.api_secret is not None

    def secrets(self) -> list[str]:
        """Raw credential values, for log redaction."""
        return [s.get_secret_value() for s in (self.api_key, self.api_secret) if s is not None]


class LoggingSettings(BaseModel):
    level: str = "INFO"
    # level for indreserve.api; DEBUG logs every request description and nonce
    request_level: str = "WARNING"
    directory: Path | None = None

    model_config = {"extra": "forbid"}

    @field_validator("level", "request_level")
    @classmethod
    def normalize_level(cls, value: str) -> str:
        return _check_level(value)


class Settings(BaseModel):
    env: str = "dev"
    client: ClientSettings = Field(default_factory=ClientSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = {"extra": "forbid"}

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        client = data.get("client")
        if isinstance(client, dict):
            for key in ("api_key", "api_secret"):
                if client.get(key) is not None:
                    client[key] = "***"
        return data

from __future__ import annotations

import logging
import logging.handlers
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .settings import LoggingSettings

# loggers of the request pipeline, tuned separately from the rest
API_LOGGER = "indreserve.api"


class SecretRedactingFilter(logging.Filter):
    """Masks API credentials in formatted log messages."""

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self.secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        redacted = message
        for secret in self.secrets:
            redacted = redacted.replace(secret, "***")
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(settings: "LoggingSettings | None" = None, *, secrets: Iterable[str] = ()) -> None:
    """Configure console and optional rotating file logging.

    ``settings.request_level`` applies to the request pipeline loggers;
    at DEBUG every dispatched request is logged with its nonce.
    """
    if settings is None:
        from .settings import LoggingSettings
        settings = LoggingSettings()

    level = logging.getLevelName(settings.level)
    request_level = logging.getLevelName(settings.request_level)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    redactor = SecretRedactingFilter(secrets)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    logging.getLogger(API_LOGGER).setLevel(request_level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.directory:
        settings.directory.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            settings.directory / "indreserve.log",
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        ))

    for handler in handlers:
        handler.setLevel(min(level, request_level))
        handler.setFormatter(formatter)
        handler.addFilter(redactor)
        root_logger.addHandler(handler)

"""Tests for settings loading and logging setup."""

import logging

import pytest

from indreserve.config import load_settings
from indreserve.logging import API_LOGGER, SecretRedactingFilter, configure_logging
from indreserve.settings import ClientSettings, LoggingSettings, Settings

ENV_KEYS = (
    "INDRESERVE_CONFIG",
    "INDRESERVE_API_KEY",
    "INDRESERVE_API_SECRET",
    "INDRESERVE_SERVER",
    "INDRESERVE_LOG_LEVEL",
    "INDRESERVE_CLIENT__API_KEY",
    "INDRESERVE_CLIENT__TIMEOUT_MS",
    "INDRESERVE_LOGGING__REQUEST_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    api_logger = logging.getLogger(API_LOGGER)
    saved = root.handlers[:]
    saved_level = root.level
    saved_api_level = api_logger.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in saved:
        root.addHandler(handler)
    root.setLevel(saved_level)
    api_logger.setLevel(saved_api_level)


def test_defaults_when_file_missing(tmp_path):
    settings = load_settings(tmp_path / "missing.yml")

    assert settings.env == "dev"
    assert settings.client.server == "https://api.independentreserve.com"
    assert settings.client.timeout_ms == 10000
    assert settings.client.api_key is None
    assert settings.client.has_credentials is False
    assert settings.logging.level == "INFO"
    assert settings.logging.request_level == "WARNING"


def test_loads_yaml(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(
        "env: prod\n"
        "client:\n"
        "  api_key: key-1\n"
        "  api_secret: secret-1\n"
        "  timeout_ms: 2500\n"
        "logging:\n"
        "  request_level: debug\n",
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings.env == "prod"
    assert settings.client.api_key.get_secret_value() == "key-1"
    assert settings.client.api_secret.get_secret_value() == "secret-1"
    assert settings.client.timeout_ms == 2500
    assert settings.client.has_credentials is True
    assert settings.logging.request_level == "DEBUG"


def test_nested_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("INDRESERVE_CLIENT__API_KEY", "12345")
    monkeypatch.setenv("INDRESERVE_CLIENT__TIMEOUT_MS", "3000")

    settings = load_settings(tmp_path / "missing.yml")

    assert settings.client.api_key.get_secret_value() == "12345"
    assert settings.client.timeout_ms == 3000


def test_short_env_aliases(tmp_path, monkeypatch):
    monkeypatch.setenv("INDRESERVE_API_KEY", "00123")
    monkeypatch.setenv("INDRESERVE_API_SECRET", "s3cret")
    monkeypatch.setenv("INDRESERVE_SERVER", "https://sandbox.example/")
    monkeypatch.setenv("INDRESERVE_LOG_LEVEL", "debug")

    settings = load_settings(tmp_path / "missing.yml")

    assert settings.client.api_key.get_secret_value() == "00123"
    assert settings.client.api_secret.get_secret_value() == "s3cret"
    assert settings.client.server == "https://sandbox.example"
    assert settings.logging.level == "DEBUG"


def test_nested_env_wins_over_alias(tmp_path, monkeypatch):
    monkeypatch.setenv("INDRESERVE_API_KEY", "alias")
    monkeypatch.setenv("INDRESERVE_CLIENT__API_KEY", "nested")

    settings = load_settings(tmp_path / "missing.yml")

    assert settings.client.api_key.get_secret_value() == "nested"


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "alt.yml"
    path.write_text("env: staging\n", encoding="utf-8")
    monkeypatch.setenv("INDRESERVE_CONFIG", str(path))

    assert load_settings().env == "staging"


def test_partial_credentials_warn(tmp_path, monkeypatch, caplog):
    monkeypatch.setenv("INDRESERVE_API_KEY", "only-key")

    with caplog.at_level(logging.WARNING, logger="indreserve.config"):
        settings = load_settings(tmp_path / "missing.yml")

    assert settings.client.has_credentials is False
    assert "client.api_secret is not set" in caplog.text


def test_invalid_root(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Config root must be a mapping"):
        load_settings(path)


@pytest.mark.parametrize("body", [
    "client:\n  timeout_ms: 0\n",
    "client:\n  timeout_ms: 600000\n",
    "client:\n  server: api.independentreserve.com\n",
    "client:\n  retries: 3\n",
    "logging:\n  level: LOUD\n",
])
def test_invalid_values(tmp_path, body):
    path = tmp_path / "config.yml"
    path.write_text(body, encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid configuration"):
        load_settings(path)


def test_server_trailing_slash_stripped():
    assert ClientSettings(server="https://x/").server == "https://x"


def test_redacted_masks_credentials():
    settings = Settings(client=ClientSettings(api_key="K", api_secret="S"))

    data = settings.redacted()

    assert data["client"]["api_key"] == "***"
    assert data["client"]["api_secret"] == "***"


def test_client_settings_are_frozen():
    settings = ClientSettings()

    with pytest.raises(Exception):
        settings.timeout_ms = 5


def test_redacting_filter_masks_secrets():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "key=%s secret=%s", ("K123", "S456"), None)

    SecretRedactingFilter(["K123", "S456"]).filter(record)

    assert record.getMessage() == "key=*** secret=***"


def test_configure_logging_writes_file(tmp_path, restore_root_logger):
    settings = LoggingSettings(level="INFO", request_level="DEBUG", directory=tmp_path / "logs")

    configure_logging(settings, secrets=["topsecret"])

    assert restore_root_logger.level == logging.INFO
    assert logging.getLogger(API_LOGGER).level == logging.DEBUG
    logging.getLogger("indreserve.api.transport").debug("dispatching with topsecret")
    logging.getLogger("indreserve.cli").debug("hidden")
    for handler in restore_root_logger.handlers:
        handler.flush()
    text = (tmp_path / "logs" / "indreserve.log").read_text()
    assert "dispatching with ***" in text
    assert "topsecret" not in text
    assert "hidden" not in text

"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from indreserve.api.client import IndependentReserveClient


def create_async_response(status=200, text="", reason="OK"):
    """Create a mock aiohttp response usable as an async context manager."""
    resp = AsyncMock()
    resp.status = status
    resp.reason = reason
    resp.text = AsyncMock(return_value=text)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=None)
    return resp


def attach_session(client, resp=None, side_effect=None):
    """Point the client's transport at a mock session and return it."""
    mock_session = MagicMock()
    if side_effect is not None:
        mock_session.request = MagicMock(side_effect=side_effect)
    else:
        mock_session.request = MagicMock(return_value=resp)
    client.transport._ensure_session = AsyncMock(return_value=mock_session)
    return mock_session


@pytest.fixture
def api_key():
    """Test API key."""
    return "test_api_key_123456"


@pytest.fixture
def api_secret():
    """Test API secret."""
    return "test_api_secret_789012"


@pytest.fixture
def client(api_key, api_secret):
    """Client with credentials and a fixed server URL."""
    return IndependentReserveClient(api_key, api_secret, "https://x")


@pytest.fixture
def public_client():
    """Client without credentials."""
    return IndependentReserveClient(server="https://x")


@pytest.fixture
def sample_accounts_response():
    """Sample GetAccounts response body."""
    return (
        '[{"AccountGuid": "66dcac65-bf07-4e68-ad46-838f51100424", "AccountStatus": "Active",'
        ' "AvailableBalance": 45.334, "CurrencyCode": "Xbt", "TotalBalance": 46.81}]'
    )

"""Shared test fixtures."""

from unittest.mock import AsyncMock

import pytest

from pushgw.config import Settings
from pushgw.services.dispatch_service import DispatchService
from pushgw.services.push_provider import SendOutcome
from pushgw.services.token_registry import TokenRegistry


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env="development",
        debug=True,
        default_platform="android",
        fcm_credentials_json="",
    )


@pytest.fixture
def registry() -> TokenRegistry:
    return TokenRegistry(default_platform="android")


@pytest.fixture
def mock_provider():
    provider = AsyncMock()
    provider.send_single.return_value = "msg-42"
    provider.send_multicast.side_effect = lambda tokens, data, options: [
        SendOutcome(success=True, message_id=f"msg-{t}") for t in tokens
    ]
    return provider


@pytest.fixture
def dispatch(registry, mock_provider) -> DispatchService:
    return DispatchService(
        registry=registry,
        provider=mock_provider,
        default_options={"priority": "high"},
    )

"""Shared fixtures for Channel Relay tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from channel_relay.config import get_settings
from channel_relay.relay.models import InboundEvent, WebhookCredential
from channel_relay.relay.registry import RelayRegistry
from channel_relay.relay.store import RelayStore

BOT_USER_ID = 999
SOURCE_ID = 100
TARGET_ID = 200
OTHER_SOURCE_ID = 300
OTHER_TARGET_ID = 400


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    """Provide required settings and isolate the settings cache."""
    monkeypatch.setenv("DISCORD_TOKEN", "test-discord-token")
    monkeypatch.delenv("ALLOWED_USER_IDS", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_channel(channel_id: int, name: str = "general") -> MagicMock:
    """A stand-in for a resolved platform channel."""
    channel = MagicMock()
    channel.id = channel_id
    channel.name = name
    return channel


@pytest.fixture
def channels() -> dict[int, MagicMock]:
    """Channels the fake gateway can resolve, keyed by ID."""
    return {
        SOURCE_ID: make_channel(SOURCE_ID, "source"),
        TARGET_ID: make_channel(TARGET_ID, "target"),
        OTHER_SOURCE_ID: make_channel(OTHER_SOURCE_ID, "other-source"),
        OTHER_TARGET_ID: make_channel(OTHER_TARGET_ID, "other-target"),
    }


@pytest.fixture
def gateway(channels: dict[int, MagicMock]) -> MagicMock:
    """Gateway double with async platform operations."""
    gw = MagicMock()
    gw.self_id = BOT_USER_ID
    gw.fetch_channel = AsyncMock(side_effect=lambda channel_id: channels.get(channel_id))
    gw.list_endpoints = AsyncMock(return_value=[])
    gw.create_endpoint = AsyncMock(
        return_value=WebhookCredential(id=555, token="created-token", owned=True)
    )
    gw.delete_endpoint = AsyncMock()
    gw.post_via_endpoint = AsyncMock()
    gw.post_direct = AsyncMock()
    gw.create_mirror_channel = AsyncMock(return_value=make_channel(700, "source-100"))
    return gw


@pytest.fixture
def store(tmp_path) -> RelayStore:
    """Store backed by a file in a temporary directory."""
    return RelayStore(tmp_path / "data" / "mirror_config.json")


@pytest.fixture
def registry(gateway: MagicMock, store: RelayStore) -> RelayRegistry:
    """Registry wired to the gateway double and a temporary store."""
    return RelayRegistry(gateway, store, webhook_name="Mirror Bot")


@pytest.fixture
def make_event():
    """Factory for inbound events from the default source channel."""

    def _make(**overrides) -> InboundEvent:
        fields = {
            "message_id": 1,
            "channel_id": SOURCE_ID,
            "author_id": 42,
            "author_name": "alice",
            "author_avatar_url": "https://cdn.discordapp.com/avatars/42/abc.png",
            "text": "hello",
        }
        fields.update(overrides)
        return InboundEvent(**fields)

    return _make

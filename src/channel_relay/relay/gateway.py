"""Boundary between the relay engine and the chat platform.

The engine only talks to the platform through :class:`RelayGateway`, which
keeps the registry, transports and lifecycle code free of discord.py
specifics and easy to exercise with mocks.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from channel_relay.relay.models import OutboundPayload, WebhookCredential


class GatewayError(Exception):
    """A platform call failed (HTTP error, missing permission, ...)."""


class RelayGateway(Protocol):
    """Operations the relay engine needs from the platform.

    Channel handles are opaque to the engine; they are whatever the
    implementation returns from :meth:`fetch_channel`.
    """

    @property
    def self_id(self) -> int | None:
        """User ID the relay posts under, or None before login."""
        ...

    async def fetch_channel(self, channel_id: int) -> Any | None:
        """Resolve a channel, returning None when it does not exist or is not visible."""
        ...

    async def list_endpoints(self, channel: Any) -> Sequence[WebhookCredential]:
        """Webhooks of *channel* that carry a usable token."""
        ...

    async def create_endpoint(
        self, channel: Any, name: str, avatar_url: str | None = None
    ) -> WebhookCredential:
        """Create a webhook in *channel*."""
        ...

    async def delete_endpoint(self, credential: WebhookCredential) -> None:
        """Delete a webhook."""
        ...

    async def post_via_endpoint(
        self, credential: WebhookCredential, payload: OutboundPayload
    ) -> None:
        """Post *payload* through a webhook under the author's name and avatar."""
        ...

    async def post_direct(self, channel: Any, payload: OutboundPayload) -> None:
        """Post *payload* into *channel* under the relay's own identity."""
        ...

    async def create_mirror_channel(self, guild_id: int, source: Any) -> Any:
        """Create a text channel in *guild_id* to receive a copy of *source*."""
        ...

"""Delivery strategies for relayed messages.

Two variants share one interface:

- DirectTransport posts under the bot's own identity, resolving the target
  channel on every delivery.
- WebhookTransport posts through a webhook so the copy shows the original
  author's name and avatar.

``deliver`` never raises: platform failures come back as a failed
:class:`DeliveryResult` for the caller to log.
"""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from typing import Any

from channel_relay.constants import MAX_DISCORD_MESSAGE_LENGTH
from channel_relay.logging import get_logger
from channel_relay.relay.errors import EndpointProvisionError
from channel_relay.relay.gateway import GatewayError, RelayGateway
from channel_relay.relay.models import (
    DeliveryResult,
    OutboundPayload,
    RelayMode,
    WebhookCredential,
)
from channel_relay.utils import split_text_chunks

log = get_logger("channel_relay.relay.transport")


def chunk_payload(
    payload: OutboundPayload, max_length: int = MAX_DISCORD_MESSAGE_LENGTH
) -> list[OutboundPayload]:
    """Split a payload into messages that fit Discord's length limit.

    Embeds are attached to the last chunk only.
    """
    chunks = split_text_chunks(payload.text, max_length)
    if len(chunks) <= 1:
        return [payload]

    parts = [dataclasses.replace(payload, text=chunk, embeds=()) for chunk in chunks[:-1]]
    parts.append(dataclasses.replace(payload, text=chunks[-1]))
    return parts


class Transport(ABC):
    """Delivers payloads into one target channel."""

    mode: RelayMode

    def __init__(self, gateway: RelayGateway) -> None:
        self._gateway = gateway

    async def deliver(self, payload: OutboundPayload) -> DeliveryResult:
        """Deliver *payload*, reporting failure instead of raising."""
        for part in chunk_payload(payload):
            try:
                await self._send(part)
            except GatewayError as exc:
                return DeliveryResult.failure(str(exc))
        return DeliveryResult.success()

    @abstractmethod
    async def _send(self, payload: OutboundPayload) -> None:
        """Post one message. Raises GatewayError on failure."""


class DirectTransport(Transport):
    """Post as the bot itself."""

    mode = RelayMode.DIRECT

    def __init__(self, gateway: RelayGateway, target_id: int) -> None:
        super().__init__(gateway)
        self._target_id = target_id

    async def _send(self, payload: OutboundPayload) -> None:
        # Resolved per delivery so a recreated or re-permissioned channel is picked up
        channel = await self._gateway.fetch_channel(self._target_id)
        if channel is None:
            raise GatewayError(f"target channel {self._target_id} not found")
        await self._gateway.post_direct(channel, payload)


class WebhookTransport(Transport):
    """Post through a webhook, impersonating the original author."""

    mode = RelayMode.WEBHOOK

    def __init__(self, gateway: RelayGateway, credential: WebhookCredential) -> None:
        super().__init__(gateway)
        self._credential = credential

    @property
    def credential(self) -> WebhookCredential:
        return self._credential

    async def _send(self, payload: OutboundPayload) -> None:
        await self._gateway.post_via_endpoint(self._credential, payload)


def build_transport(
    gateway: RelayGateway,
    mode: RelayMode,
    target_id: int,
    credential: WebhookCredential | None = None,
) -> Transport:
    """Create the transport matching *mode*."""
    if mode is RelayMode.WEBHOOK:
        if credential is None:
            raise ValueError("webhook transport requires a credential")
        return WebhookTransport(gateway, credential)
    return DirectTransport(gateway, target_id)


async def provision_webhook(
    gateway: RelayGateway,
    channel: Any,
    *,
    name: str,
    avatar_url: str | None = None,
) -> WebhookCredential:
    """Reuse a webhook of *channel* that has a token, or create one.

    Raises:
        EndpointProvisionError: If no webhook could be reused or created.
    """
    try:
        existing = await gateway.list_endpoints(channel)
    except GatewayError as exc:
        # Usually a missing Manage Webhooks permission; creation will tell
        log.warning("webhook_list_failed", error=str(exc))
        existing = []

    for credential in existing:
        if credential.token:
            log.info("webhook_reused", webhook_id=credential.id)
            return dataclasses.replace(credential, owned=False)

    try:
        created = await gateway.create_endpoint(channel, name, avatar_url)
    except GatewayError as exc:
        if avatar_url is None:
            raise EndpointProvisionError(
                "Failed to create a webhook. Check permissions in the target channel."
            ) from exc
        log.info("webhook_avatar_rejected", error=str(exc))
        try:
            created = await gateway.create_endpoint(channel, name, None)
        except GatewayError as retry_exc:
            raise EndpointProvisionError(
                "Failed to create a webhook. Check permissions in the target channel."
            ) from retry_exc

    log.info("webhook_created", webhook_id=created.id)
    return dataclasses.replace(created, owned=True)

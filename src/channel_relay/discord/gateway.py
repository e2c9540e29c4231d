"""discord.py implementation of the relay gateway."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

import aiohttp
import discord

from channel_relay.constants import MAX_CHANNEL_NAME_PREFIX
from channel_relay.logging import get_logger
from channel_relay.relay.gateway import GatewayError
from channel_relay.relay.models import OutboundPayload, WebhookCredential

log = get_logger("channel_relay.discord.gateway")

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def mirror_channel_name(source_name: str | None, source_id: int) -> str:
    """Channel name for a mirror of *source_name*, unique per source channel."""
    base = _UNSAFE_NAME_CHARS.sub("-", source_name or "clone-channel")[:MAX_CHANNEL_NAME_PREFIX]
    return f"{base}-{str(source_id)[:8]}"


class DiscordGateway:
    """Resolve channels and post messages through a logged-in discord.Client.

    Webhook calls go over a dedicated aiohttp session, independent of the
    bot's own HTTP client, so webhook posts carry only the webhook token.
    """

    def __init__(self, client: discord.Client) -> None:
        self._client = client
        self._session: aiohttp.ClientSession | None = None

    @property
    def self_id(self) -> int | None:
        user = self._client.user
        return user.id if user else None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Close the webhook HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    async def fetch_channel(self, channel_id: int) -> Any | None:
        channel = self._client.get_channel(channel_id)
        if channel is not None:
            return channel
        try:
            return await self._client.fetch_channel(channel_id)
        except (discord.NotFound, discord.Forbidden, discord.InvalidData) as exc:
            log.debug("channel_unavailable", channel_id=channel_id, error=str(exc))
            return None
        except discord.HTTPException as exc:
            raise GatewayError(f"could not fetch channel {channel_id}: {exc}") from exc

    async def create_mirror_channel(self, guild_id: int, source: Any) -> discord.TextChannel:
        source_name = getattr(source, "name", None)
        source_guild = getattr(source, "guild", None)
        topic = (
            f"Clone of #{source_name} ({source.id}) from "
            f"{source_guild.name if source_guild else 'DM'}"
        )
        try:
            guild = self._client.get_guild(guild_id) or await self._client.fetch_guild(guild_id)
            return await guild.create_text_channel(
                mirror_channel_name(source_name, source.id), topic=topic
            )
        except discord.HTTPException as exc:
            raise GatewayError(
                f"could not create mirror channel in guild {guild_id}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def list_endpoints(self, channel: Any) -> Sequence[WebhookCredential]:
        if not hasattr(channel, "webhooks"):
            return []
        try:
            hooks = await channel.webhooks()
        except discord.HTTPException as exc:
            raise GatewayError(f"could not list webhooks: {exc}") from exc
        return [WebhookCredential(id=hook.id, token=hook.token) for hook in hooks if hook.token]

    async def create_endpoint(
        self, channel: Any, name: str, avatar_url: str | None = None
    ) -> WebhookCredential:
        if not hasattr(channel, "create_webhook"):
            raise GatewayError(f"channel {channel.id} does not support webhooks")

        avatar = await self._download(avatar_url) if avatar_url else None
        try:
            hook = await channel.create_webhook(name=name, avatar=avatar, reason="Channel relay")
        except discord.HTTPException as exc:
            raise GatewayError(f"could not create webhook: {exc}") from exc
        if not hook.token:
            raise GatewayError(f"webhook {hook.id} was created without a token")
        return WebhookCredential(id=hook.id, token=hook.token, owned=True)

    async def delete_endpoint(self, credential: WebhookCredential) -> None:
        webhook = discord.Webhook.partial(
            credential.id, credential.token, session=self._get_session()
        )
        try:
            await webhook.delete(reason="Relay stopped")
        except discord.NotFound:
            log.debug("webhook_already_deleted", webhook_id=credential.id)
        except discord.HTTPException as exc:
            raise GatewayError(f"could not delete webhook {credential.id}: {exc}") from exc

    # ------------------------------------------------------------------
    # Posting
    # ------------------------------------------------------------------

    async def post_via_endpoint(
        self, credential: WebhookCredential, payload: OutboundPayload
    ) -> None:
        webhook = discord.Webhook.partial(
            credential.id, credential.token, session=self._get_session()
        )
        try:
            await webhook.send(
                content=payload.text if payload.text.strip() else None,
                username=payload.display_name,
                avatar_url=payload.avatar_url,
                embeds=list(payload.embeds),
            )
        except discord.HTTPException as exc:
            raise GatewayError(f"webhook {credential.id} send failed: {exc}") from exc

    async def post_direct(self, channel: Any, payload: OutboundPayload) -> None:
        if not hasattr(channel, "send"):
            raise GatewayError(f"channel {channel.id} does not accept messages")
        try:
            await channel.send(
                content=payload.text if payload.text.strip() else None,
                embeds=list(payload.embeds),
            )
        except discord.HTTPException as exc:
            raise GatewayError(f"send to channel {channel.id} failed: {exc}") from exc

    async def _download(self, url: str) -> bytes | None:
        try:
            async with self._get_session().get(url) as response:
                response.raise_for_status()
                return await response.read()
        except aiohttp.ClientError as exc:
            log.warning("avatar_download_failed", url=url, error=str(exc))
            return None

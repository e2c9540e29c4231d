"""Converts discord.Message events into relay InboundEvents."""

from __future__ import annotations

from typing import TYPE_CHECKING

from channel_relay.constants import UNKNOWN_AUTHOR_NAME
from channel_relay.relay.models import InboundEvent

if TYPE_CHECKING:
    import discord


def to_inbound_event(message: discord.Message) -> InboundEvent:
    """Reduce a Discord message to the fields the relay engine uses."""
    author = message.author
    avatar = getattr(author, "display_avatar", None)

    return InboundEvent(
        message_id=message.id,
        channel_id=message.channel.id,
        author_id=author.id,
        author_name=getattr(author, "display_name", None) or author.name or UNKNOWN_AUTHOR_NAME,
        author_avatar_url=avatar.url if avatar is not None else None,
        text=message.content or "",
        attachments=tuple(attachment.url for attachment in message.attachments),
        embeds=tuple(message.embeds),
        author_is_bot=bool(author.bot),
        is_system=message.is_system(),
    )

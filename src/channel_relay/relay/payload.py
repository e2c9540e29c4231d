"""Turns inbound messages into relay payloads.

Attachments are not re-uploaded. Their CDN URLs are appended to the
message text instead, and Discord renders those links as inline previews
in the target channel.
"""

from __future__ import annotations

import re

from channel_relay.constants import CDN_LINK_PATTERN, UNKNOWN_AUTHOR_NAME
from channel_relay.relay.models import InboundEvent, OutboundPayload

_CDN_LINK_RE = re.compile(CDN_LINK_PATTERN)


def extract_media_links(text: str) -> list[str]:
    """Return CDN links found in *text*, in order of appearance."""
    return _CDN_LINK_RE.findall(text or "")


def collect_media_links(event: InboundEvent) -> list[str]:
    """Attachment URLs followed by CDN links from the text, without duplicates."""
    links: list[str] = []
    seen: set[str] = set()
    for url in (*event.attachments, *extract_media_links(event.text)):
        if url and url not in seen:
            seen.add(url)
            links.append(url)
    return links


def is_relayable_author(event: InboundEvent, self_id: int | None) -> bool:
    """Whether the event's author should be mirrored at all."""
    if self_id is not None and event.author_id == self_id:
        return False
    if event.author_is_bot:
        return False
    return not event.is_system


def build_payload(event: InboundEvent, *, self_id: int | None) -> OutboundPayload | None:
    """Build the payload to post for *event*.

    Args:
        event: The inbound message.
        self_id: User ID of the relay itself; its own messages are skipped.

    Returns:
        The payload, or None when the message must not be relayed (our own,
        bot or system message) or has nothing to relay.
    """
    if not is_relayable_author(event, self_id):
        return None

    text = event.text or ""
    if not text and not event.attachments and not event.embeds:
        return None

    links = collect_media_links(event)
    link_block = "\n".join(links)
    if text and link_block:
        final_text = f"{text}\n{link_block}"
    else:
        final_text = text or link_block

    return OutboundPayload(
        display_name=event.author_name or UNKNOWN_AUTHOR_NAME,
        avatar_url=event.author_avatar_url,
        text=final_text,
        embeds=tuple(event.embeds),
    )

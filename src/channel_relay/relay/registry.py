"""In-memory table of active relays.

The registry is the single source of truth for whether a source channel is
relayed. Every start/stop goes through one asyncio lock so the uniqueness
check, remote provisioning and the state-file rewrite never interleave.
"""

from __future__ import annotations

import asyncio

from channel_relay.logging import get_logger
from channel_relay.relay.errors import AlreadyActiveError, InvalidChannelError
from channel_relay.relay.gateway import GatewayError, RelayGateway
from channel_relay.relay.models import (
    RelayEntry,
    RelayMode,
    RelaySummary,
    WebhookCredential,
    utc_now_iso,
)
from channel_relay.relay.store import RelayStore
from channel_relay.relay.transport import build_transport, provision_webhook

log = get_logger("channel_relay.relay.registry")


class RelayRegistry:
    """Create, remove and list relays, persisting every change."""

    def __init__(
        self,
        gateway: RelayGateway,
        store: RelayStore,
        *,
        webhook_name: str,
        webhook_avatar_url: str | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            gateway: Platform access used to resolve channels and webhooks.
            store: Where the relay table is saved after each change.
            webhook_name: Name given to webhooks the registry creates.
            webhook_avatar_url: Avatar for created webhooks, if any.
        """
        self._gateway = gateway
        self._store = store
        self._webhook_name = webhook_name
        self._webhook_avatar_url = webhook_avatar_url
        self._entries: dict[int, RelayEntry] = {}
        self._lock = asyncio.Lock()

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, source_id: int) -> RelayEntry | None:
        """Return the active relay for *source_id*, if any."""
        return self._entries.get(source_id)

    def list(self) -> list[RelaySummary]:
        """Summaries of all active relays, oldest first."""
        return [entry.summary() for entry in self._entries.values()]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def start(
        self,
        source_id: int,
        target_id: int,
        mode: RelayMode,
        credential: WebhookCredential | None = None,
        *,
        restoring: bool = False,
        started_at: str | None = None,
    ) -> RelayEntry:
        """Start relaying *source_id* into *target_id*.

        Args:
            source_id: Channel to mirror.
            target_id: Channel receiving the copies.
            mode: Delivery strategy.
            credential: Webhook to use in webhook mode. When omitted, one is
                reused from or created in the target channel.
            restoring: True when re-activating a saved relay at startup; the
                state file already holds it and is not rewritten.
            started_at: Original start time of a restored relay.

        Raises:
            AlreadyActiveError: *source_id* is already relayed.
            InvalidChannelError: Either channel cannot be resolved.
            EndpointProvisionError: No webhook could be reused or created.
        """
        async with self._lock:
            if source_id in self._entries:
                raise AlreadyActiveError(source_id)

            source = await self._gateway.fetch_channel(source_id)
            if source is None:
                raise InvalidChannelError(source_id, "source")
            target = await self._gateway.fetch_channel(target_id)
            # Categories and forums resolve but cannot take messages
            if target is None or not hasattr(target, "send"):
                raise InvalidChannelError(target_id, "target")

            if mode is RelayMode.WEBHOOK and credential is None:
                credential = await provision_webhook(
                    self._gateway,
                    target,
                    name=self._webhook_name,
                    avatar_url=self._webhook_avatar_url,
                )
            if mode is RelayMode.DIRECT:
                credential = None

            entry = RelayEntry(
                source_id=source_id,
                target_id=target_id,
                mode=mode,
                transport=build_transport(self._gateway, mode, target_id, credential),
                webhook=credential,
                started_at=started_at or utc_now_iso(),
            )
            self._entries[source_id] = entry

            if not restoring:
                self._persist()

        log.info(
            "relay_started",
            source_id=source_id,
            target_id=target_id,
            mode=mode.value,
            restored=restoring,
        )
        return entry

    async def stop(self, source_id: int) -> bool:
        """Stop relaying *source_id*.

        Webhooks the registry created itself are deleted; reused ones are
        left alone.

        Returns:
            True if a relay was removed.
        """
        async with self._lock:
            entry = self._entries.pop(source_id, None)
            if entry is None:
                return False

            if entry.webhook is not None and entry.webhook.owned:
                try:
                    await self._gateway.delete_endpoint(entry.webhook)
                except GatewayError as exc:
                    log.warning(
                        "webhook_delete_failed",
                        source_id=source_id,
                        webhook_id=entry.webhook.id,
                        error=str(exc),
                    )

            self._persist()

        log.info("relay_stopped", source_id=source_id, target_id=entry.target_id)
        return True

    def _persist(self) -> None:
        try:
            self._store.save(entry.to_record() for entry in self._entries.values())
        except OSError as exc:
            log.error("relay_store_save_failed", path=str(self._store.path), error=str(exc))

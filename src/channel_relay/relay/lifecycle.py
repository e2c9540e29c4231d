"""Startup restoration and live dispatch of relayed messages."""

from __future__ import annotations

import asyncio

from channel_relay.logging import get_logger
from channel_relay.relay.errors import RelayError, RestorationFailure
from channel_relay.relay.gateway import GatewayError, RelayGateway
from channel_relay.relay.models import InboundEvent, PersistedRecord, RelayEntry
from channel_relay.relay.payload import build_payload
from channel_relay.relay.registry import RelayRegistry
from channel_relay.relay.store import RelayStore

log = get_logger("channel_relay.relay.lifecycle")


class RelayManager:
    """Owns the relay registry for the lifetime of the process.

    On startup it re-activates every saved relay. Afterwards each inbound
    message from a relayed channel is handled in its own task, so a slow or
    failing delivery never holds up the next message.
    """

    def __init__(
        self,
        gateway: RelayGateway,
        registry: RelayRegistry,
        store: RelayStore,
    ) -> None:
        self._gateway = gateway
        self._registry = registry
        self._store = store
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def registry(self) -> RelayRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Restoration
    # ------------------------------------------------------------------

    async def restore_record(self, record: PersistedRecord) -> RelayEntry:
        """Re-activate one saved relay.

        Raises:
            RestorationFailure: The relay could not be started again.
        """
        try:
            return await self._registry.start(
                record.source_id,
                record.target_id,
                record.mode,
                record.webhook,
                restoring=True,
                started_at=record.started_at,
            )
        except (RelayError, GatewayError) as exc:
            raise RestorationFailure(record.source_id, exc) from exc

    async def restore(self) -> int:
        """Re-activate every saved relay.

        A relay that cannot be restored is skipped but stays in the state
        file, so a temporary outage does not lose the configuration.

        Returns:
            Number of relays restored.
        """
        records = self._store.load()
        restored = 0
        for record in records.values():
            try:
                await self.restore_record(record)
            except RestorationFailure as exc:
                log.error(
                    "relay_restore_failed",
                    source_id=exc.source_id,
                    target_id=record.target_id,
                    error=str(exc.cause),
                )
                continue
            restored += 1

        log.info("relays_restored", restored=restored, saved=len(records))
        return restored

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, event: InboundEvent) -> asyncio.Task[None] | None:
        """Schedule delivery of *event* if its channel is relayed.

        Returns:
            The handling task, or None when the channel is not relayed.
        """
        entry = self._registry.get(event.channel_id)
        if entry is None:
            return None

        task = asyncio.create_task(self._relay(entry, event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for all in-flight deliveries."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _relay(self, entry: RelayEntry, event: InboundEvent) -> None:
        try:
            payload = build_payload(event, self_id=self._gateway.self_id)
            if payload is None or not payload.has_content:
                return

            result = await entry.transport.deliver(payload)
            if not result.ok:
                log.error(
                    "relay_delivery_failed",
                    source_id=entry.source_id,
                    target_id=entry.target_id,
                    mode=entry.mode.value,
                    message_id=event.message_id,
                    error=result.error,
                )
                return

            log.debug(
                "message_relayed",
                source_id=entry.source_id,
                target_id=entry.target_id,
                message_id=event.message_id,
            )
        except Exception as exc:
            # Keep the stream alive whatever a single message does
            log.exception(
                "relay_task_crashed",
                source_id=entry.source_id,
                message_id=event.message_id,
                error=str(exc),
            )

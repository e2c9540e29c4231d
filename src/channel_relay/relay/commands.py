"""Operator commands: start, stop and list relays.

Each command returns text ready to show to the operator. Typed relay errors
are turned into friendly messages here and nowhere else.
"""

from __future__ import annotations

from datetime import datetime

from channel_relay.logging import get_logger
from channel_relay.relay.errors import (
    AlreadyActiveError,
    EndpointProvisionError,
    InvalidChannelError,
)
from channel_relay.relay.gateway import GatewayError, RelayGateway
from channel_relay.relay.models import RelayMode, RelaySummary
from channel_relay.relay.registry import RelayRegistry

log = get_logger("channel_relay.relay.commands")

NO_RELAYS_MESSAGE = "No active relays. Use `/relay start` to mirror a channel."


def _format_started(started_at: str) -> str:
    try:
        return datetime.fromisoformat(started_at).strftime("%Y-%m-%d %H:%M UTC")
    except ValueError:
        return started_at


def format_summary(summary: RelaySummary) -> str:
    """Render one relay for the list output."""
    return (
        f"**Source:** <#{summary.source_id}> (`{summary.source_id}`)\n"
        f"**Target:** <#{summary.target_id}> (`{summary.target_id}`)\n"
        f"**Mode:** {summary.mode.value}\n"
        f"**Started:** {_format_started(summary.started_at)}"
    )


class RelayCommands:
    """The start/stop/list operations exposed to operators."""

    def __init__(
        self,
        registry: RelayRegistry,
        gateway: RelayGateway,
        *,
        logging_guild_id: int | None = None,
    ) -> None:
        """Initialize the command handlers.

        Args:
            registry: The active relay table.
            gateway: Platform access, used to create mirror channels.
            logging_guild_id: Guild in which a mirror channel is created
                when ``start_relay`` is called without a target.
        """
        self._registry = registry
        self._gateway = gateway
        self._logging_guild_id = logging_guild_id

    async def start_relay(
        self,
        source_id: int,
        target_id: int | None = None,
        mode: RelayMode = RelayMode.WEBHOOK,
    ) -> str:
        """Start a relay, creating a mirror channel when no target is given.

        A created mirror channel always uses webhook mode. It is made before
        the registry lock is taken, so two concurrent calls for the same
        source may each create one; the losing call's channel is left in place.
        """
        if source_id in self._registry:
            return (
                "This channel is already being relayed. "
                "Use `/relay list` to see active relays."
            )

        try:
            if target_id is None:
                target_id = await self._create_mirror_channel(source_id)
                if target_id is None:
                    return (
                        "No target channel given and no logging server is configured. "
                        "Set LOGGING_GUILD_ID or pass a target channel."
                    )
                mode = RelayMode.WEBHOOK
            entry = await self._registry.start(source_id, target_id, mode)
        except AlreadyActiveError:
            return "This channel is already being relayed. Use `/relay list` to see active relays."
        except InvalidChannelError as exc:
            return (
                f"Could not find the {exc.role} channel `{exc.channel_id}`. "
                "Please check the channel ID and permissions."
            )
        except EndpointProvisionError as exc:
            return str(exc)
        except GatewayError as exc:
            log.error("relay_start_failed", source_id=source_id, error=str(exc))
            return "There was an error setting up the relay."

        return (
            f"Successfully set up relay for <#{entry.source_id}> to <#{entry.target_id}> "
            f"({entry.mode.value} mode)."
        )

    async def stop_relay(self, source_id: int) -> str:
        """Stop a relay. The target channel is kept."""
        if not await self._registry.stop(source_id):
            return "This channel is not being relayed. Use `/relay list` to see active relays."
        return f"Stopped relaying <#{source_id}>. The target channel has been preserved."

    def list_relays(self) -> str:
        """Describe every active relay."""
        summaries = self._registry.list()
        if not summaries:
            return NO_RELAYS_MESSAGE
        blocks = [format_summary(summary) for summary in summaries]
        return "**Active Relays:**\n\n" + "\n\n".join(blocks)

    async def _create_mirror_channel(self, source_id: int) -> int | None:
        if self._logging_guild_id is None:
            return None
        source = await self._gateway.fetch_channel(source_id)
        if source is None:
            raise InvalidChannelError(source_id, "source")
        channel = await self._gateway.create_mirror_channel(self._logging_guild_id, source)
        log.info("mirror_channel_created", source_id=source_id, channel_id=channel.id)
        return int(channel.id)

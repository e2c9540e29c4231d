"""Discord bot implementation."""

from typing import Literal

import discord
from discord import app_commands

from channel_relay.config import Settings
from channel_relay.constants import MAX_DISCORD_MESSAGE_LENGTH
from channel_relay.discord.adapter import to_inbound_event
from channel_relay.discord.gateway import DiscordGateway
from channel_relay.discord.security import UserAllowlist
from channel_relay.logging import get_logger
from channel_relay.relay.commands import RelayCommands
from channel_relay.relay.lifecycle import RelayManager
from channel_relay.relay.models import RelayMode
from channel_relay.relay.registry import RelayRegistry
from channel_relay.relay.store import RelayStore
from channel_relay.utils import parse_channel_id, split_text_chunks

log = get_logger("channel_relay.discord.bot")

NOT_ALLOWED_MESSAGE = "Sorry, you're not authorized to manage relays."


class RelayBot(discord.Client):
    """Channel Relay Discord bot."""

    def __init__(self, settings: Settings) -> None:
        """Initialize the bot.

        Args:
            settings: Application settings.
        """
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guild_messages = True

        super().__init__(intents=intents)

        self._settings = settings
        self._gateway = DiscordGateway(self)
        self._store = RelayStore(settings.relay_state_path)
        self._registry = RelayRegistry(
            self._gateway,
            self._store,
            webhook_name=settings.webhook_name,
        )
        self._manager = RelayManager(self._gateway, self._registry, self._store)
        self._commands = RelayCommands(
            self._registry,
            self._gateway,
            logging_guild_id=settings.logging_guild_id,
        )
        self._allowlist = UserAllowlist(settings.allowed_user_ids)
        self._tree = app_commands.CommandTree(self)
        self._restored = False

        self._setup_commands()

    @property
    def manager(self) -> RelayManager:
        return self._manager

    def _setup_commands(self) -> None:
        """Set up slash commands."""
        group = app_commands.Group(name="relay", description="Mirror channels into other channels")

        @group.command(name="start", description="Start mirroring a channel")
        @app_commands.describe(
            source="ID or mention of the channel to mirror",
            target="ID or mention of the destination (omit to create one)",
            mode="webhook keeps author names and avatars, direct posts as the bot",
        )
        async def start_command(
            interaction: discord.Interaction,
            source: str,
            target: str | None = None,
            mode: Literal["webhook", "direct"] = "webhook",
        ) -> None:
            await self._handle_start(interaction, source, target, mode)

        @group.command(name="stop", description="Stop mirroring a channel")
        async def stop_command(interaction: discord.Interaction, source: str) -> None:
            await self._handle_stop(interaction, source)

        @group.command(name="list", description="List active relays")
        async def list_command(interaction: discord.Interaction) -> None:
            await self._handle_list(interaction)

        self._tree.add_command(group)

    async def setup_hook(self) -> None:
        """Called when the bot is ready to set up."""
        await self._tree.sync()
        log.info("commands_synced")

    async def on_ready(self) -> None:
        """Restore saved relays once the first connection is up."""
        log.info(
            "bot_ready",
            user=str(self.user),
            guilds=len(self.guilds),
        )
        if self._restored:
            return
        self._restored = True
        await self._manager.restore()

    async def on_message(self, message: discord.Message) -> None:
        """Hand messages from relayed channels to the relay manager."""
        if message.channel.id not in self._registry:
            return
        self._manager.dispatch(to_inbound_event(message))

    async def close(self) -> None:
        """Finish in-flight deliveries and release the webhook session."""
        await self._manager.drain()
        await self._gateway.close()
        await super().close()

    # ------------------------------------------------------------------
    # Command handlers
    # ------------------------------------------------------------------

    async def _handle_start(
        self,
        interaction: discord.Interaction,
        source: str,
        target: str | None,
        mode: str,
    ) -> None:
        """Handle /relay start."""
        if not await self._check_allowed(interaction):
            return

        source_id = parse_channel_id(source)
        target_id = parse_channel_id(target) if target else None
        if source_id is None or (target and target_id is None):
            await interaction.response.send_message(
                "Please provide channel IDs or channel mentions.", ephemeral=True
            )
            return

        await interaction.response.defer(ephemeral=True)
        reply = await self._commands.start_relay(source_id, target_id, RelayMode(mode))
        await self._send_followup(interaction, reply)

    async def _handle_stop(self, interaction: discord.Interaction, source: str) -> None:
        """Handle /relay stop."""
        if not await self._check_allowed(interaction):
            return

        source_id = parse_channel_id(source)
        if source_id is None:
            await interaction.response.send_message(
                "Please provide a channel ID or channel mention.", ephemeral=True
            )
            return

        await interaction.response.defer(ephemeral=True)
        reply = await self._commands.stop_relay(source_id)
        await self._send_followup(interaction, reply)

    async def _handle_list(self, interaction: discord.Interaction) -> None:
        """Handle /relay list."""
        if not await self._check_allowed(interaction):
            return

        await interaction.response.defer(ephemeral=True)
        await self._send_followup(interaction, self._commands.list_relays())

    async def _check_allowed(self, interaction: discord.Interaction) -> bool:
        if self._allowlist.is_allowed(interaction.user.id):
            return True
        log.warning("user_not_allowed", user_id=interaction.user.id)
        await interaction.response.send_message(NOT_ALLOWED_MESSAGE, ephemeral=True)
        return False

    async def _send_followup(self, interaction: discord.Interaction, content: str) -> None:
        """Send a reply, splitting it if it exceeds Discord's limit."""
        for part in split_text_chunks(content, MAX_DISCORD_MESSAGE_LENGTH):
            await interaction.followup.send(part, ephemeral=True)

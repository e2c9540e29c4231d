"""Unit tests for the Discord bot layer."""

from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from channel_relay.config import Settings
from channel_relay.discord.bot import NOT_ALLOWED_MESSAGE, RelayBot
from channel_relay.relay.commands import NO_RELAYS_MESSAGE
from channel_relay.relay.models import InboundEvent, RelayMode


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        discord_token="test-token",
        allowed_user_ids=[123456789],
        relay_state_path=tmp_path / "relays.json",
    )


@pytest.fixture
def bot(settings) -> RelayBot:
    bot = RelayBot(settings)
    bot_user = MagicMock(spec=discord.ClientUser)
    bot_user.id = 999999999
    bot_user.name = "RelayBot"
    bot._connection.user = bot_user
    return bot


@pytest.fixture
def mock_message() -> MagicMock:
    message = MagicMock(spec=discord.Message)
    message.id = 1
    message.channel = MagicMock(spec=discord.TextChannel)
    message.channel.id = 100
    message.author = MagicMock(spec=discord.Member)
    message.author.id = 42
    message.author.name = "alice"
    message.author.display_name = "Alice"
    message.author.bot = False
    message.author.display_avatar = MagicMock()
    message.author.display_avatar.url = "https://cdn.discordapp.com/avatars/42/a.png"
    message.content = "hello"
    message.attachments = []
    message.embeds = []
    message.is_system.return_value = False
    return message


@pytest.fixture
def mock_interaction() -> MagicMock:
    interaction = MagicMock(spec=discord.Interaction)
    interaction.user = MagicMock(spec=discord.User)
    interaction.user.id = 123456789
    interaction.response = AsyncMock()
    interaction.followup = AsyncMock()
    return interaction


class TestBotInitialization:
    """Test bot initialization."""

    def test_bot_init(self, bot):
        assert bot.manager is not None
        assert bot._tree.get_command("relay") is not None
        assert bot._restored is False

    async def test_setup_hook_syncs_commands(self, bot):
        with patch.object(bot._tree, "sync", AsyncMock()) as mock_sync:
            await bot.setup_hook()

        mock_sync.assert_awaited_once()

    async def test_on_ready_restores_once(self, bot):
        bot._manager.restore = AsyncMock(return_value=0)

        await bot.on_ready()
        await bot.on_ready()

        bot._manager.restore.assert_awaited_once()

    async def test_close_drains_and_closes_session(self, bot):
        bot._manager.drain = AsyncMock()
        bot._gateway.close = AsyncMock()

        with patch.object(discord.Client, "close", AsyncMock()):
            await bot.close()

        bot._manager.drain.assert_awaited_once()
        bot._gateway.close.assert_awaited_once()


class TestOnMessage:
    """Test on_message handler."""

    async def test_ignores_unrelayed_channel(self, bot, mock_message):
        bot._manager.dispatch = MagicMock()

        await bot.on_message(mock_message)

        bot._manager.dispatch.assert_not_called()

    async def test_dispatches_relayed_channel(self, bot, mock_message):
        bot._gateway.fetch_channel = AsyncMock(return_value=MagicMock())
        await bot._registry.start(100, 200, RelayMode.DIRECT)
        bot._manager.dispatch = MagicMock()

        await bot.on_message(mock_message)

        event = bot._manager.dispatch.call_args.args[0]
        assert isinstance(event, InboundEvent)
        assert event.channel_id == 100
        assert event.text == "hello"


class TestSlashCommands:
    """Test /relay command handlers."""

    async def test_rejects_unlisted_user(self, bot, mock_interaction):
        mock_interaction.user.id = 1
        bot._commands.start_relay = AsyncMock()

        await bot._handle_start(mock_interaction, "100", "200", "direct")

        mock_interaction.response.send_message.assert_awaited_once_with(
            NOT_ALLOWED_MESSAGE, ephemeral=True
        )
        bot._commands.start_relay.assert_not_awaited()

    async def test_start_parses_mentions(self, bot, mock_interaction):
        bot._commands.start_relay = AsyncMock(return_value="started")

        await bot._handle_start(mock_interaction, "<#100>", "200", "direct")

        bot._commands.start_relay.assert_awaited_once_with(100, 200, RelayMode.DIRECT)
        mock_interaction.followup.send.assert_awaited_once_with("started", ephemeral=True)

    async def test_start_without_target(self, bot, mock_interaction):
        bot._commands.start_relay = AsyncMock(return_value="started")

        await bot._handle_start(mock_interaction, "100", None, "webhook")

        bot._commands.start_relay.assert_awaited_once_with(100, None, RelayMode.WEBHOOK)

    async def test_start_rejects_bad_channel_text(self, bot, mock_interaction):
        bot._commands.start_relay = AsyncMock()

        await bot._handle_start(mock_interaction, "general", None, "webhook")

        bot._commands.start_relay.assert_not_awaited()
        mock_interaction.response.send_message.assert_awaited_once()

    async def test_stop(self, bot, mock_interaction):
        bot._commands.stop_relay = AsyncMock(return_value="stopped")

        await bot._handle_stop(mock_interaction, "100")

        bot._commands.stop_relay.assert_awaited_once_with(100)
        mock_interaction.followup.send.assert_awaited_once_with("stopped", ephemeral=True)

    async def test_list(self, bot, mock_interaction):
        await bot._handle_list(mock_interaction)

        mock_interaction.followup.send.assert_awaited_once_with(NO_RELAYS_MESSAGE, ephemeral=True)

    async def test_long_reply_is_split(self, bot, mock_interaction):
        bot._commands.list_relays = MagicMock(return_value="\n".join(["x" * 1500] * 2))

        await bot._handle_list(mock_interaction)

        assert mock_interaction.followup.send.await_count == 2

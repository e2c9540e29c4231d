"""Main entry point for Channel Relay."""

import asyncio

from channel_relay.config import get_settings
from channel_relay.discord.bot import RelayBot
from channel_relay.logging import get_logger, setup_logging


async def main() -> None:
    """Main application entry point."""
    setup_logging()
    log = get_logger("channel_relay.main")

    settings = get_settings()
    log.info(
        "starting_channel_relay",
        environment=settings.environment,
        state_path=str(settings.relay_state_path),
    )

    bot = RelayBot(settings)
    log.info("bot_created")

    try:
        await bot.start(settings.discord_token.get_secret_value())
    except KeyboardInterrupt:
        log.info("shutdown_requested")
    finally:
        await bot.close()
        log.info("channel_relay_stopped")


def run() -> None:
    """Run the application."""
    asyncio.run(main())


if __name__ == "__main__":
    run()

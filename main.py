from __future__ import annotations

import asyncio

import discord
import structlog

from discord_bot import Bot
from discord_bot.cli import collect_configuration
from discord_bot.diagnostics import configure_logging
from discord_bot.errors import ConfigurationError

logger = structlog.get_logger("main")


async def _async_main() -> None:
    try:
        config = collect_configuration()
    except ConfigurationError as exc:
        logger.error("Invalid configuration", error=str(exc))
        return

    configure_logging(config.log_level, config.json_logs)
    logger.info("Starting bot", prefix=config.prefix)

    bot = Bot(config)
    try:
        async with bot:
            await bot.start(config.token)
    except discord.LoginFailure:
        logger.error("Failed to authenticate with Discord. Please verify your token.")
    except discord.PrivilegedIntentsRequired:
        logger.error(
            "Discord refused the connection: enable the message content and members "
            "intents for this application."
        )
    except Exception as exc:  # noqa: BLE001
        logger.error("An unexpected error occurred", error=str(exc), error_debug=repr(exc))


def main() -> None:
    try:
        asyncio.run(_async_main())
    except KeyboardInterrupt:
        print("\nShutting down.")


if __name__ == "__main__":
    main()

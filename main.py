#!/usr/bin/env python3
"""
DevMob Onboarding Bot - Entry Point
===================================

Loads the environment, validates configuration, logs in with backoff and
hands the gateway connection to discord.py.

Startup:
1. Load .env
2. Validate configuration (DISCORD_TOKEN required)
3. Log in, retrying up to 5 times (30s, 60s, 120s, 120s)
4. Connect; discord.py reconnects on its own after that

Server: the DevMob
"""

import asyncio
import sys

import aiohttp
import discord
from dotenv import load_dotenv

load_dotenv()

from devmob.bot import DevMobBot  # noqa: E402
from devmob.core.config import ConfigValidationError, validate_and_log_config  # noqa: E402
from devmob.core.constants import LOGIN_BACKOFF_BASE, LOGIN_BACKOFF_MAX, LOGIN_MAX_ATTEMPTS  # noqa: E402
from devmob.core.logger import logger  # noqa: E402
from devmob.utils.error_handler import ErrorHandler  # noqa: E402
from devmob.utils.retry import retry_async  # noqa: E402

LOGIN_RETRY_EXCEPTIONS = (
    discord.HTTPException,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    OSError,
)


async def main() -> None:
    """
    Run the bot until interrupted.

    Raises:
        SystemExit: Missing configuration or login failure.
    """
    logger.tree("DEVMOB STARTING", [
        ("Server", "the DevMob"),
        ("Commands", "/join, /story, /invite, /promote, /deletestory"),
    ], "🔥")

    try:
        config = validate_and_log_config()
    except ConfigValidationError as e:
        logger.error(f"❌ {e}")
        logger.error("   Please add the missing values to the .env file")
        sys.exit(1)

    bot = DevMobBot(config)

    async with bot:
        try:
            await retry_async(
                bot.login,
                config.discord_token,
                operation="Discord Login",
                max_retries=LOGIN_MAX_ATTEMPTS - 1,
                base_delay=LOGIN_BACKOFF_BASE,
                max_delay=LOGIN_BACKOFF_MAX,
                exceptions=LOGIN_RETRY_EXCEPTIONS,
            )
        except discord.LoginFailure as e:
            logger.error("Login Rejected", [("Error", str(e)), ("Hint", "Check DISCORD_TOKEN")])
            sys.exit(1)
        except LOGIN_RETRY_EXCEPTIONS as e:
            ErrorHandler.handle(e, location="main.login", critical=True, attempts=LOGIN_MAX_ATTEMPTS)
            sys.exit(1)

        await bot.connect(reconnect=True)


def run() -> None:
    """Console script entry."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down")


if __name__ == "__main__":
    run()

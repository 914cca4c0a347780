"""
cluebot Entry Point

Starts the Discord bot. The only argument is a bot token or the path to a
file containing one; DISCORD_BOT_TOKEN is used when it is omitted.
"""

import argparse
import asyncio
import logging
import sys

from cluebot.bot import create_bot
from cluebot.config import settings
from cluebot.utils.token_loader import TokenError, load_token

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the cluebot Discord bot")
    parser.add_argument(
        "token",
        nargs="?",
        help="Bot token, or path to a file containing it",
    )
    return parser.parse_args(argv)


async def main(token: str) -> None:
    """Main entry point for the bot."""
    bot = create_bot()

    try:
        await bot.start(token)
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    finally:
        await bot.close()


if __name__ == "__main__":
    args = parse_args()
    try:
        token = load_token(args.token)
    except TokenError as e:
        logger.error(str(e))
        sys.exit(e.exit_code)

    asyncio.run(main(token))

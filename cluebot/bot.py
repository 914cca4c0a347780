"""
Main bot class for cluebot.

This module contains the core ClueBot class that handles cog loading,
command routing and Discord events, and provides the factory function
for bot creation.
"""

import logging
from pathlib import Path
from typing import Optional

import discord
from discord.ext import commands

from cluebot.config import settings
from cluebot.utils.healthcheck import HealthcheckServer, start_healthcheck_server
from cluebot.utils.parsing import parse_command

logger = logging.getLogger(__name__)


class ClueBot(commands.Bot):
    """
    Discord bot answering `--` prefixed text commands.

    Cogs from the cogs directory are loaded on startup. Incoming messages
    pass through on_message, which drops bot authors, messages without the
    prefix and unknown command names before the commands framework runs.
    """

    def __init__(self) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        super().__init__(
            command_prefix=settings.command_prefix,
            intents=intents,
            case_insensitive=True,
            help_command=None,
            activity=discord.Activity(
                type=discord.ActivityType.listening, name=settings.activity_name
            ),
        )
        self.healthcheck_server: Optional[HealthcheckServer] = None

    async def setup_hook(self) -> None:
        """Load all cogs and start the healthcheck server."""
        await self.load_extensions()

        if settings.healthcheck_enabled:
            try:
                self.healthcheck_server = await start_healthcheck_server(self)
            except Exception as e:
                logger.error(f"Failed to start healthcheck server: {e}")

    async def load_extensions(self) -> None:
        """Load all cog files from the cogs directory."""
        cogs_dir = Path(__file__).parent / "cogs"
        for file in cogs_dir.glob("*.py"):
            if file.name != "__init__.py":
                cog_name = f"cluebot.cogs.{file.stem}"
                try:
                    await self.load_extension(cog_name)
                    logger.info(f"Loaded cog: {cog_name}")
                except Exception as e:
                    logger.error(f"Failed to load cog {cog_name}: {e}")

    async def on_ready(self) -> None:
        """Handle bot ready event."""
        logger.info(f"Logged in as {self.user}, serving {len(self.guilds)} guild(s)")

    async def on_message(self, message: discord.Message) -> None:
        """Route prefixed text commands to their handlers."""
        if message.author.bot:
            return

        command = parse_command(message.content, settings.command_prefix)
        if command is None:
            return

        if settings.owner_ids and message.author.id not in settings.owner_ids:
            return

        if self.get_command(command.name) is None:
            logger.debug(f"Ignoring unknown command {command.name!r}")
            return

        logger.info(
            f"Dispatching {settings.command_prefix}{command.name} from {message.author} "
            f"in {message.guild or 'DM'}"
        )
        await self.process_commands(message)

    async def on_command_error(
        self, ctx: commands.Context, error: commands.CommandError
    ) -> None:
        """Keep command failures inside the invocation that raised them."""
        if isinstance(error, (commands.CommandNotFound, commands.CheckFailure)):
            logger.debug(f"Command {ctx.invoked_with!r} not run: {error}")
            return

        original = getattr(error, "original", error)
        logger.error(
            f"Command {ctx.invoked_with!r} failed",
            exc_info=(type(original), original, original.__traceback__),
        )

    async def close(self) -> None:
        """Clean shutdown of bot and healthcheck server."""
        if self.healthcheck_server:
            await self.healthcheck_server.stop()
        await super().close()


def create_bot() -> ClueBot:
    """Factory function to create and return the bot instance."""
    return ClueBot()

"""
Basic utility commands for cluebot.

Provides latency measurements (--ping, --rtt) and avatar lookup (--avatar).
These commands work in direct messages as well as in guild channels.
"""

import asyncio
import logging
import math
import random
import time
from typing import Any, Awaitable

import discord
from discord.ext import commands

from cluebot.config import settings
from cluebot.utils.resolver import resolve_user

logger = logging.getLogger(__name__)

PLACEHOLDER = "Calculating..."


async def timed(awaitable: Awaitable[Any]) -> tuple[float, Any]:
    """Await something and return the elapsed milliseconds with its result."""
    start = time.perf_counter()
    result = await awaitable
    return (time.perf_counter() - start) * 1000, result


def format_latencies(latencies: dict[str, float | None]) -> str | None:
    """
    Format the completed latency measurements, one per line.

    Args:
        latencies: Label to milliseconds, None for measurements that failed

    Returns:
        The formatted text, or None if no measurement completed
    """
    lines = [
        f"**{label}**: {round(ms)}ms"
        for label, ms in latencies.items()
        if ms is not None
    ]
    return "\n".join(lines) if lines else None


def build_avatar_embed(user: discord.abc.User | None, argument: str | None) -> discord.Embed:
    embed = discord.Embed()
    if user is not None:
        embed.set_author(name=user.name)
        embed.set_image(url=user.display_avatar.url)
    else:
        embed.color = discord.Color.red()
        embed.description = f"Unable to find user {argument}"
    return embed


async def edit_reply(message: discord.Message, content: str) -> None:
    """Replace a placeholder's content, logging when Discord refuses the edit."""
    try:
        await message.edit(content=content)
    except discord.HTTPException as e:
        logger.warning(f"Cannot edit reply {message.id}: {e}")


class BasicCog(commands.Cog, name="Basic"):
    """Latency and avatar commands."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    def _gateway_latency(self) -> float | None:
        latency = self.bot.latency
        if latency is None or not math.isfinite(latency):
            return None
        return latency * 1000

    @commands.command(name="ping")
    async def ping(self, ctx: commands.Context) -> None:
        """Show message, gateway and REST latency."""
        message_result, rest_result = await asyncio.gather(
            timed(ctx.send(PLACEHOLDER)),
            timed(self.bot.fetch_user(self.bot.user.id)),
            return_exceptions=True,
        )

        if isinstance(message_result, BaseException):
            logger.warning(f"Cannot send ping placeholder: {message_result}")
            return

        message_ping, placeholder = message_result
        rest_ping = None
        if isinstance(rest_result, BaseException):
            logger.warning(f"REST latency measurement failed: {rest_result}")
        else:
            rest_ping = rest_result[0]

        content = format_latencies(
            {
                "Message Ping": message_ping,
                "Gateway Ping": self._gateway_latency(),
                "Rest Ping": rest_ping,
            }
        )
        await edit_reply(placeholder, content)

    @commands.command(name="rtt")
    async def rtt(self, ctx: commands.Context) -> None:
        """Measure the time until our own message is echoed by the gateway."""
        nonce = str(random.getrandbits(63))
        start = time.perf_counter()

        def is_echo(message: discord.Message) -> bool:
            return message.author == self.bot.user and str(message.nonce) == nonce

        echo = asyncio.ensure_future(
            self.bot.wait_for("message", check=is_echo, timeout=settings.rtt_timeout)
        )

        try:
            placeholder = await ctx.send(PLACEHOLDER, nonce=nonce)
        except discord.HTTPException as e:
            echo.cancel()
            logger.warning(f"Cannot send rtt placeholder: {e}")
            return

        try:
            echoed = await echo
        except asyncio.TimeoutError:
            logger.info(f"No echo for nonce {nonce} within {settings.rtt_timeout}s")
            await edit_reply(placeholder, f"RTT: no echo within {settings.rtt_timeout:g}s")
            return

        elapsed = (time.perf_counter() - start) * 1000
        await edit_reply(echoed, f"RTT: {round(elapsed)} ms")

    @commands.command(name="avatar")
    async def avatar(self, ctx: commands.Context, *, argument: str | None = None) -> None:
        """Show the avatar of a user, the caller by default."""
        user = await resolve_user(self.bot, ctx.message, argument)
        await ctx.send(embed=build_avatar_embed(user, argument))


async def setup(bot: commands.Bot) -> None:
    """Required function to load the cog."""
    await bot.add_cog(BasicCog(bot))

"""
Moderation commands for cluebot.

Provides --softban (ban with one day of message removal, then unban) and
--purge (delete a user's recent messages in the current channel). Both are
guild-only and reply exactly once with the final outcome.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Optional

import discord
from discord.ext import commands

from cluebot.config import settings
from cluebot.utils.checks import guild_channel_writable, has_channel_permission
from cluebot.utils.outcome import ActionOutcome
from cluebot.utils.resolver import resolve_user, user_tag

logger = logging.getLogger(__name__)

# Messages older than this cannot be bulk deleted by the API
BULK_DELETE_MAX_AGE = timedelta(days=14)


async def collect_batches(
    history: AsyncIterator[discord.Message],
    author_id: int,
    now: datetime,
    max_age_days: int,
    batch_size: int,
) -> AsyncIterator[list[discord.Message]]:
    """
    Group a user's recent messages into deletion batches.

    The history must be ordered newest first. Enumeration stops at the
    first message whose age in whole days reaches max_age_days.

    Args:
        history: Channel history, newest first
        author_id: Only messages by this author are kept
        now: Reference time for the age cutoff
        max_age_days: Age in whole days at which enumeration stops
        batch_size: Maximum number of messages per batch

    Yields:
        Lists of at most batch_size messages
    """
    batch: list[discord.Message] = []
    try:
        async for message in history:
            if (now - message.created_at).days >= max_age_days:
                break
            if message.author.id != author_id:
                continue
            batch.append(message)
            if len(batch) >= batch_size:
                yield batch
                batch = []
    except discord.HTTPException:
        # Hand out what was already found before reporting the failure
        if batch:
            yield batch
        raise
    if batch:
        yield batch


async def delete_batch(
    channel: discord.abc.Messageable, batch: list[discord.Message], now: datetime
) -> int:
    """
    Delete one batch of messages, ignoring individual failures.

    Returns:
        Number of messages that were deleted
    """
    bulk = [m for m in batch if now - m.created_at < BULK_DELETE_MAX_AGE]
    single = [m for m in batch if now - m.created_at >= BULK_DELETE_MAX_AGE]
    if len(bulk) == 1:
        single.insert(0, bulk.pop())

    deleted = 0
    if bulk:
        try:
            await channel.delete_messages(bulk)
            deleted += len(bulk)
        except discord.HTTPException as e:
            logger.warning(f"Bulk delete of {len(bulk)} messages failed: {e}")
            single = bulk + single

    for message in single:
        try:
            await message.delete()
            deleted += 1
        except discord.HTTPException as e:
            logger.debug(f"Cannot delete message {message.id}: {e}")
    return deleted


class ModerationCog(commands.Cog, name="Moderation"):
    """Guild moderation commands."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @commands.command(name="softban")
    @guild_channel_writable()
    async def softban(self, ctx: commands.Context, *, argument: str | None = None) -> None:
        """Ban a user to remove their recent messages, then unban them."""
        outcome = await self.run_softban(ctx, argument)
        await ctx.send(outcome.message)

    async def run_softban(
        self, ctx: commands.Context, argument: Optional[str]
    ) -> ActionOutcome:
        if argument is None:
            return ActionOutcome.usage(f"Usage: `{settings.command_prefix}softban <user>`")

        if not has_channel_permission(ctx.author, ctx.channel, "kick_members"):
            return ActionOutcome.unauthorized(
                "You lack the permission to kick members in this server!"
            )
        if not has_channel_permission(ctx.guild.me, ctx.channel, "ban_members"):
            return ActionOutcome.unauthorized(
                "I lack the permission to ban members in this server!"
            )

        user = await resolve_user(self.bot, ctx.message, argument)
        if user is None:
            return ActionOutcome.missing_target(f"Unable to find user {argument}")

        try:
            await ctx.guild.ban(
                user,
                delete_message_seconds=settings.softban_delete_days * 86400,
                reason=f"Softban by {ctx.author}",
            )
        except discord.HTTPException as e:
            self._log_remote_failure("ban", user, e)
            return ActionOutcome.failure("Cannot softban this user!")

        await asyncio.sleep(settings.softban_delay)

        try:
            await ctx.guild.unban(discord.Object(id=user.id), reason="Softban")
        except discord.HTTPException as e:
            self._log_remote_failure("unban", user, e)
            return ActionOutcome.failure("Cannot softban this user!")

        logger.info(f"Softbanned {user_tag(user)} ({user.id}) in {ctx.guild}")
        return ActionOutcome.success("Softban concluded.")

    @commands.command(name="purge")
    @guild_channel_writable()
    async def purge(self, ctx: commands.Context, *, argument: str | None = None) -> None:
        """Delete a user's messages from the last 30 days in this channel."""
        outcome = await self.run_purge(ctx, argument)
        await ctx.send(outcome.message)

    async def run_purge(
        self, ctx: commands.Context, argument: Optional[str]
    ) -> ActionOutcome:
        if argument is None:
            return ActionOutcome.usage(f"Usage: `{settings.command_prefix}purge <user>`")

        if not has_channel_permission(ctx.author, ctx.channel, "manage_messages"):
            return ActionOutcome.unauthorized(
                "You lack the permission to manage messages in this channel!"
            )
        if not has_channel_permission(ctx.guild.me, ctx.channel, "manage_messages"):
            return ActionOutcome.unauthorized(
                "I lack the permission to manage messages in this channel!"
            )

        user = await resolve_user(self.bot, ctx.message, argument)
        if user is None:
            return ActionOutcome.missing_target(f"Unknown user {argument}")

        now = datetime.now(timezone.utc)
        tasks: list[asyncio.Task[int]] = []
        history_failed = False

        try:
            async for batch in collect_batches(
                ctx.channel.history(limit=None),
                user.id,
                now,
                settings.purge_max_age_days,
                settings.purge_batch_size,
            ):
                if not tasks:
                    await self._notify_progress(ctx)
                tasks.append(asyncio.create_task(delete_batch(ctx.channel, batch, now)))
        except discord.HTTPException as e:
            logger.warning(f"Cannot read history of {ctx.channel}: {e}")
            history_failed = True

        results = await asyncio.gather(*tasks, return_exceptions=True)
        deleted = 0
        for result in results:
            if isinstance(result, BaseException):
                logger.warning(f"Purge batch failed: {result}")
            else:
                deleted += result

        logger.info(
            f"Purged {deleted} message(s) by {user_tag(user)} in {len(tasks)} batch(es) "
            f"from #{ctx.channel}"
        )
        if history_failed:
            return ActionOutcome.failure("Cannot read the message history of this channel!")
        return ActionOutcome.success("Finished!")

    @staticmethod
    async def _notify_progress(ctx: commands.Context) -> None:
        try:
            await ctx.send("Working on it...")
        except discord.HTTPException as e:
            logger.warning(f"Cannot send purge progress notice in {ctx.channel}: {e}")

    @staticmethod
    def _log_remote_failure(
        action: str, user: discord.abc.User, error: discord.HTTPException
    ) -> None:
        if isinstance(error, discord.Forbidden):
            logger.warning(f"Missing permission to {action} {user_tag(user)} ({user.id}): {error}")
        else:
            logger.warning(f"Failed to {action} {user_tag(user)} ({user.id}): {error}")


async def setup(bot: commands.Bot) -> None:
    """Required function to load the cog."""
    await bot.add_cog(ModerationCog(bot))

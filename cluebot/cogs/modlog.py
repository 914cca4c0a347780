"""
Moderation log for cluebot.

Mirrors ban, unban and kick events into the guild's mod-log channel.
Each event is matched against the audit log to attribute the moderator
and reason; events without a matching entry or without a log channel are
dropped silently.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import discord
from discord.ext import commands

from cluebot.config import settings
from cluebot.utils.checks import has_channel_permission
from cluebot.utils.resolver import user_tag

logger = logging.getLogger(__name__)

HAMMER_EMOJI = "\U0001F528"
SURPRISED_EMOJI = "\U0001F62E"
BOOT_EMOJI = "\U0001F462"


@dataclass(frozen=True)
class ModAction:
    emoji: str
    verb: str
    color: discord.Color
    audit_action: discord.AuditLogAction


BAN = ModAction(HAMMER_EMOJI, "Banned", discord.Color.red(), discord.AuditLogAction.ban)
UNBAN = ModAction(SURPRISED_EMOJI, "Unbanned", discord.Color.green(), discord.AuditLogAction.unban)
KICK = ModAction(BOOT_EMOJI, "Kicked", discord.Color.orange(), discord.AuditLogAction.kick)


def build_modlog_embed(
    action: ModAction,
    user: discord.abc.User,
    entry: discord.AuditLogEntry,
    now: Optional[datetime] = None,
) -> discord.Embed:
    """Compose the notification, attributed from the audit log entry."""
    embed = discord.Embed(
        description=f"{action.emoji} {action.verb} **{user_tag(user)}** ({user.id})",
        color=action.color,
        timestamp=now or datetime.now(timezone.utc),
    )
    if entry.reason:
        embed.set_footer(text=f"Reason: {entry.reason}")
    if entry.user is not None:
        embed.set_author(name=entry.user.name, icon_url=entry.user.display_avatar.url)
    return embed


def find_modlog_channel(guild: discord.Guild) -> Optional[discord.TextChannel]:
    """First text channel with the configured log name that we may write to."""
    for channel in guild.text_channels:
        if channel.name == settings.modlog_channel_name and has_channel_permission(
            guild.me, channel, "send_messages"
        ):
            return channel
    return None


async def find_audit_entry(
    guild: discord.Guild, user_id: int, action: discord.AuditLogAction
) -> Optional[discord.AuditLogEntry]:
    """Newest audit log entry of the given type targeting the user, if any."""
    async for entry in guild.audit_logs(limit=settings.audit_log_scan_limit, action=action):
        target = entry.target
        if target is not None and getattr(target, "id", None) == user_id:
            return entry
    return None


class ModLogCog(commands.Cog, name="ModLog"):
    """Listeners for guild moderation events."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_member_ban(self, guild: discord.Guild, user: discord.abc.User) -> None:
        await self.report(guild, user, BAN)

    @commands.Cog.listener()
    async def on_member_unban(self, guild: discord.Guild, user: discord.User) -> None:
        await self.report(guild, user, UNBAN)

    @commands.Cog.listener()
    async def on_member_remove(self, member: discord.Member) -> None:
        # Leaves and kicks look the same, only a kick has an audit entry
        await self.report(member.guild, member, KICK)

    async def report(
        self, guild: discord.Guild, user: discord.abc.User, action: ModAction
    ) -> bool:
        """
        Post a moderation event to the mod-log channel.

        Returns:
            True if a notification was sent, False if it was dropped
        """
        # Listeners fire for every guild, so access is checked per event from
        # the cached member permissions
        if guild.me is None or not guild.me.guild_permissions.view_audit_log:
            logger.debug(f"No audit log access in {guild}, skipping {action.verb}")
            return False

        channel = find_modlog_channel(guild)
        if channel is None:
            logger.debug(f"No writable #{settings.modlog_channel_name} in {guild}")
            return False

        # Audit log entries show up shortly after the gateway event
        await asyncio.sleep(settings.audit_log_delay)

        try:
            entry = await asyncio.wait_for(
                find_audit_entry(guild, user.id, action.audit_action),
                timeout=settings.audit_log_window,
            )
        except asyncio.TimeoutError:
            logger.debug(f"Audit log scan timed out for {user.id} in {guild}")
            return False
        except discord.HTTPException as e:
            logger.warning(f"Cannot read audit log of {guild}: {e}")
            return False

        if entry is None:
            logger.debug(f"No {action.audit_action.name} entry for {user.id} in {guild}")
            return False

        try:
            await channel.send(embed=build_modlog_embed(action, user, entry))
        except discord.HTTPException as e:
            logger.warning(f"Cannot post to #{channel.name} in {guild}: {e}")
            return False

        logger.info(f"Logged {action.verb.lower()} of {user_tag(user)} in {guild}")
        return True


async def setup(bot: commands.Bot) -> None:
    """Required function to load the cog."""
    await bot.add_cog(ModLogCog(bot))

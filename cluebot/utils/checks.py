"""
Permission checks for text commands.

Provides the guild-channel gate for guild-only commands and helpers to
query channel permissions for the invoking member and for the bot itself.
"""

from typing import Any, Callable

import discord
from discord.ext import commands


class GuildChannelRequired(commands.CheckFailure):
    """Raised when a guild-only command runs outside a writable guild channel."""


def has_channel_permission(
    member: discord.abc.Snowflake, channel: Any, permission: str
) -> bool:
    """
    Check whether a member holds a permission in a channel.

    Channel permissions include the member's guild-wide permissions and
    any channel overwrites.

    Args:
        member: Member whose permissions are checked
        channel: Guild channel providing the permission scope
        permission: Permission flag name, e.g. "kick_members"

    Returns:
        True if the permission is granted, False otherwise
    """
    permissions = channel.permissions_for(member)
    return bool(getattr(permissions, permission, False))


def bot_can_write(channel: Any) -> bool:
    """Check whether the bot may send messages in a guild channel."""
    guild = getattr(channel, "guild", None)
    if guild is None or guild.me is None:
        return False
    return has_channel_permission(guild.me, channel, "send_messages")


def guild_channel_writable() -> Callable[[Any], Any]:
    """
    Check decorator for guild-only commands.

    The invocation must come from a guild channel and the bot must hold
    write permission there. Evaluated on every invocation.

    Usage:
        @commands.command()
        @guild_channel_writable()
        async def my_command(self, ctx: commands.Context):
            # Command implementation
    """

    def predicate(ctx: commands.Context) -> bool:
        if ctx.guild is None:
            raise GuildChannelRequired("Command is only available in guilds")
        if not bot_can_write(ctx.channel):
            raise GuildChannelRequired(
                f"Cannot write in #{getattr(ctx.channel, 'name', ctx.channel)}"
            )
        return True

    return commands.check(predicate)

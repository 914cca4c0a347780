"""
User lookup from free-text command arguments.

Resolution order is fixed: caller (no argument), first mention, numeric
id via the API, exact name#discriminator tag in the user cache, then a
case-insensitive name search in the user cache.
"""

import logging
import re
from typing import Any, Iterable, Optional

import discord

logger = logging.getLogger(__name__)

NUMERICAL = re.compile(r"\d+")
DISCORD_TAG = re.compile(r"\w+#\d{4}")


def user_tag(user: discord.abc.User) -> str:
    """Render a user as name#discriminator, or just the name for new-style usernames."""
    discriminator = getattr(user, "discriminator", "0")
    if not discriminator or discriminator == "0":
        return user.name
    return f"{user.name}#{discriminator}"


def find_user_by_tag(users: Iterable[discord.abc.User], tag: str) -> Optional[discord.abc.User]:
    name, _, discriminator = tag.rpartition("#")
    return discord.utils.find(
        lambda u: u.name == name and u.discriminator == discriminator, users
    )


def find_user_by_name(users: Iterable[discord.abc.User], name: str) -> Optional[discord.abc.User]:
    """
    Case-insensitive name search over cached users.

    Exact matches on the username or global display name win over
    substring matches.
    """
    needle = name.casefold()
    candidates = list(users)

    def names(user: discord.abc.User) -> list[str]:
        return [n.casefold() for n in (user.name, getattr(user, "global_name", None)) if n]

    exact = discord.utils.find(lambda u: needle in names(u), candidates)
    if exact is not None:
        return exact
    return discord.utils.find(
        lambda u: any(needle in n for n in names(u)), candidates
    )


async def fetch_user_by_id(client: Any, user_id: int) -> Optional[discord.abc.User]:
    try:
        return await client.fetch_user(user_id)
    except discord.HTTPException as e:
        logger.debug(f"User lookup by id {user_id} failed: {e}")
        return None


async def resolve_user(
    client: Any, message: discord.Message, argument: str | None
) -> Optional[discord.abc.User]:
    """
    Resolve a command argument to a user.

    Args:
        client: Connected client providing fetch_user() and the users cache
        message: Invoking message, supplies the author and mentions
        argument: Free-text user reference, None when omitted

    Returns:
        The resolved user, or None if every lookup failed
    """
    if argument is None:
        return message.author

    if message.mentions:
        return message.mentions[0]

    user: Optional[discord.abc.User] = None
    if NUMERICAL.fullmatch(argument):
        user = await fetch_user_by_id(client, int(argument))
    elif DISCORD_TAG.fullmatch(argument):
        user = find_user_by_tag(client.users, argument)

    if user is None:
        user = find_user_by_name(client.users, argument)

    if user is None:
        logger.debug(f"No user found for {argument!r}")
    return user

"""
Pytest configuration and shared fixtures for the cluebot tests.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable
from unittest.mock import Mock, AsyncMock
from discord.ext import commands
import discord


class AsyncIter:
    """Async iterator over a fixed sequence, stands in for paginated API iterators."""

    def __init__(self, items: Iterable[Any], error: Exception | None = None) -> None:
        self._items = list(items)
        self._error = error
        self.consumed = 0

    def __aiter__(self) -> "AsyncIter":
        return self

    async def __anext__(self) -> Any:
        if self.consumed < len(self._items):
            item = self._items[self.consumed]
            self.consumed += 1
            return item
        if self._error is not None:
            raise self._error
        raise StopAsyncIteration


@pytest.fixture
def async_iter() -> type[AsyncIter]:
    """Factory for async iterators over fixed items."""
    return AsyncIter


@pytest.fixture
def http_error() -> Callable[..., discord.HTTPException]:
    """Factory for discord HTTP errors without a real response."""

    def make(cls: type = discord.HTTPException, status: int = 500, text: str = "error"):
        response = Mock()
        response.status = status
        response.reason = text
        return cls(response, text)

    return make


def make_user(user_id: int, name: str, discriminator: str = "0", global_name: str | None = None) -> Mock:
    user = Mock(spec=discord.User)
    user.id = user_id
    user.name = name
    user.discriminator = discriminator
    user.global_name = global_name
    user.bot = False
    user.display_avatar = Mock()
    user.display_avatar.url = f"https://cdn.discordapp.com/avatars/{user_id}/avatar.png"
    user.__str__ = Mock(return_value=name)
    return user


@pytest.fixture
def user_factory() -> Callable[..., Mock]:
    """Factory for mock users."""
    return make_user


@pytest.fixture
def mock_bot() -> Mock:
    """Create a mock Discord bot for testing."""
    bot = Mock(spec=commands.Bot)
    bot.user = make_user(1000, "cluebot")
    bot.user.bot = True
    bot.latency = 0.1
    bot.users = []

    bot.add_cog = AsyncMock()
    bot.fetch_user = AsyncMock(side_effect=lambda user_id: make_user(user_id, "fetched"))
    bot.wait_for = AsyncMock()

    return bot


@pytest.fixture
def permissions() -> dict[str, discord.Permissions]:
    """Channel permissions per member key, mutate to revoke."""
    return {
        "author": discord.Permissions(kick_members=True, manage_messages=True),
        "me": discord.Permissions(
            send_messages=True, ban_members=True, manage_messages=True, view_audit_log=True
        ),
    }


@pytest.fixture
def mock_discord_channel() -> Mock:
    """Create a mock guild text channel for testing."""
    channel = Mock(spec=discord.TextChannel)
    channel.send = AsyncMock()
    channel.delete_messages = AsyncMock()
    channel.id = 123456789
    channel.name = "test-channel"
    channel.__str__ = Mock(return_value="test-channel")
    return channel


@pytest.fixture
def mock_guild(mock_discord_channel: Mock, permissions: dict[str, discord.Permissions]) -> Mock:
    """Create a mock guild with the bot as a member."""
    guild = Mock(spec=discord.Guild)
    guild.name = "TestGuild"
    guild.__str__ = Mock(return_value="TestGuild")
    guild.ban = AsyncMock()
    guild.unban = AsyncMock()
    guild.me = Mock(spec=discord.Member)
    guild.me.guild_permissions = permissions["me"]
    guild.text_channels = [mock_discord_channel]
    mock_discord_channel.guild = guild
    mock_discord_channel.permissions_for = Mock(
        side_effect=lambda member: permissions["me"]
        if member is guild.me
        else permissions["author"]
    )
    return guild


@pytest.fixture
def mock_discord_context(
    mock_bot: Mock, mock_guild: Mock, mock_discord_channel: Mock
) -> Mock:
    """Create a mock command context invoked in a guild channel."""
    ctx = Mock(spec=commands.Context)
    ctx.send = AsyncMock()
    ctx.bot = mock_bot
    ctx.guild = mock_guild
    ctx.channel = mock_discord_channel
    ctx.author = Mock(spec=discord.Member)
    ctx.author.id = 555
    ctx.author.name = "TestUser"
    ctx.author.display_avatar = Mock()
    ctx.author.display_avatar.url = "https://cdn.discordapp.com/avatars/555/caller.png"
    ctx.author.__str__ = Mock(return_value="TestUser")
    ctx.message = Mock(spec=discord.Message)
    ctx.message.author = ctx.author
    ctx.message.mentions = []
    return ctx


@pytest.fixture
def message_factory() -> Callable[..., Mock]:
    """Factory for channel history messages."""

    def make(author_id: int, age: timedelta, now: datetime | None = None, message_id: int = 0) -> Mock:
        now = now or datetime.now(timezone.utc)
        message = Mock(spec=discord.Message)
        message.id = message_id
        message.author = Mock()
        message.author.id = author_id
        message.created_at = now - age
        message.delete = AsyncMock()
        return message

    return make


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    """Mock environment variables for all tests."""
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "test_token")

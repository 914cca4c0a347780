"""
Bot token resolution for the command line entry point.

The single CLI argument is either the token itself or a path to a file
containing it. Without an argument the token falls back to the settings.
"""

import logging
from pathlib import Path

from cluebot.config import settings

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Base class for token lookup failures, carries the process exit code."""

    exit_code = 1


class MissingTokenError(TokenError):
    """No token argument and no DISCORD_BOT_TOKEN configured."""

    exit_code = 1


class UnreadableTokenError(TokenError):
    """The token argument names a file that cannot be read or is empty."""

    exit_code = 2


def load_token(argument: str | None = None) -> str:
    """
    Resolve the bot token.

    Args:
        argument: Raw CLI argument, a token or a path to a token file

    Returns:
        The token string

    Raises:
        MissingTokenError: If neither an argument nor a configured token exists
        UnreadableTokenError: If the argument is a path that cannot be read
    """
    if argument is None:
        if not settings.discord_bot_token:
            raise MissingTokenError("Cannot start bot without a token!")
        return settings.discord_bot_token

    path = Path(argument)
    if not path.exists():
        return argument.strip()

    try:
        token = path.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise UnreadableTokenError(f"Cannot read token file {path}: {e}") from e

    if not token:
        raise UnreadableTokenError(f"Token file {path} is empty")

    logger.info(f"Loaded token from {path}")
    return token

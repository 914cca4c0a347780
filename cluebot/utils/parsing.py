"""
Text command parsing.

A command is the first whitespace-delimited token after the prefix,
lower-cased, followed by an optional free-text argument.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Command:
    """A parsed text command."""

    name: str
    argument: str | None = None


def parse_command(content: str, prefix: str = "--") -> Command | None:
    """
    Split raw message text into a command name and its argument.

    Args:
        content: Raw message content
        prefix: Command prefix the content must start with

    Returns:
        The parsed Command, or None if the content does not carry the prefix
        or has no command name
    """
    if not content.startswith(prefix):
        return None

    parts = content[len(prefix):].split(maxsplit=1)
    if not parts or content[len(prefix)].isspace():
        return None

    name = parts[0].lower()
    argument = parts[1].strip() if len(parts) > 1 else None
    return Command(name=name, argument=argument or None)

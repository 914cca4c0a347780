"""cluebot - a small moderation and utility bot for Discord."""

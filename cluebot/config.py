"""
Configuration management for cluebot.

This module uses Pydantic settings to handle environment variables
and configuration with type validation and default values.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Bot configuration settings with environment variable support.

    All settings can be overridden via environment variables or a .env file.
    The token is usually passed on the command line, the environment
    variable is only a fallback.
    """

    discord_bot_token: str | None = None

    command_prefix: str = "--"
    activity_name: str = "for clues"

    # Empty means every author may issue commands
    owner_ids: list[int] = []

    # Softban
    softban_delay: float = 1.0
    softban_delete_days: int = 1

    # RTT echo listener
    rtt_timeout: float = 10.0

    # Purge
    purge_max_age_days: int = 30
    purge_batch_size: int = 100

    # Moderation log
    modlog_channel_name: str = "mod-log"
    audit_log_delay: float = 0.2
    audit_log_window: float = 5.0
    audit_log_scan_limit: int = 50

    # Healthcheck Configuration
    healthcheck_enabled: bool = True
    healthcheck_port: int = 3000

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()

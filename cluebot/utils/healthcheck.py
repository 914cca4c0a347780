"""
Healthcheck HTTP server for monitoring the bot.

Exposes gateway state, latency and the loaded command set as JSON.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from aiohttp import web
from discord.ext import commands

from cluebot.config import settings

logger = logging.getLogger(__name__)


class HealthcheckServer:
    """HTTP server for bot health monitoring."""

    def __init__(self, bot: commands.Bot, port: int | None = None) -> None:
        self.bot = bot
        self.port = port if port is not None else settings.healthcheck_port
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None
        self.start_time = datetime.now(timezone.utc)

        self.app.router.add_get("/health", self.health_handler)
        self.app.router.add_get("/", self.health_handler)

    def _gateway_latency_ms(self) -> float | None:
        latency = self.bot.latency
        if latency is None or not math.isfinite(latency):
            return None
        return round(latency * 1000, 2)

    async def health_handler(self, request: web.Request) -> web.Response:
        """Handle health check requests."""
        try:
            ready = self.bot.is_ready()
            uptime_seconds = (
                datetime.now(timezone.utc) - self.start_time
            ).total_seconds()

            cogs = {
                name.lower(): sorted(cmd.name for cmd in cog.get_commands())
                for name, cog in self.bot.cogs.items()
            }

            health_data = {
                "status": "healthy" if ready else "unhealthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime_seconds": round(uptime_seconds, 2),
                "gateway": {
                    "connected": ready,
                    "latency_ms": self._gateway_latency_ms(),
                    "guild_count": len(self.bot.guilds) if self.bot.guilds else 0,
                },
                "command_prefix": settings.command_prefix,
                "cogs": cogs,
            }

            return web.json_response(health_data, status=200 if ready else 503)

        except Exception as e:
            logger.error(f"Error in health check handler: {e}")
            return web.json_response(
                {
                    "status": "error",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "error": str(e),
                },
                status=500,
            )

    async def start(self) -> None:
        """Start the healthcheck HTTP server."""
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        self.site = web.TCPSite(self.runner, "0.0.0.0", self.port)
        await self.site.start()

        logger.info(f"Healthcheck server started on port {self.port}")

    async def stop(self) -> None:
        """Stop the healthcheck HTTP server."""
        try:
            if self.site:
                await self.site.stop()
            if self.runner:
                await self.runner.cleanup()
            logger.info("Healthcheck server stopped")
        except Exception as e:
            logger.error(f"Error stopping healthcheck server: {e}")


async def start_healthcheck_server(bot: commands.Bot) -> HealthcheckServer:
    """Start the healthcheck server for the bot."""
    server = HealthcheckServer(bot)
    await server.start()
    return server

"""
DevMob Onboarding Bot - Health Check Server
===========================================

HTTP health and debug endpoints for external monitoring.

DESIGN:
    A lightweight aiohttp server inside the bot's event loop. /health is
    for uptime checkers; the remaining routes let an operator look up the
    guild, channel and role ids that go into the environment file without
    opening Developer Mode in the client.

    Routes:
    - GET /health, GET /  liveness and readiness
    - GET /status         connection, latency, configured features
    - GET /guilds         guilds the bot is in
    - GET /guilds/{id}/channels
    - GET /guilds/{id}/roles
    - GET /ping

Server: the DevMob
"""

from datetime import datetime
from typing import TYPE_CHECKING

from aiohttp import web

from devmob.core.logger import logger, CAIRO_TZ

if TYPE_CHECKING:
    from devmob.bot import DevMobBot


# =============================================================================
# Health Check Server
# =============================================================================

class HealthCheckServer:
    """
    HTTP health check server for monitoring.

    Attributes:
        bot: Reference to the main bot instance.
        port: Port number for the HTTP server.
        app: aiohttp Application instance.
        runner: aiohttp AppRunner for lifecycle management.
    """

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self, bot: "DevMobBot", port: int = 8080) -> None:
        self.bot = bot
        self.port = port
        self.app = web.Application()
        self.runner: web.AppRunner = None

        self.app.router.add_get("/health", self.health_handler)
        self.app.router.add_get("/", self.health_handler)
        self.app.router.add_get("/status", self.status_handler)
        self.app.router.add_get("/ping", self.ping_handler)
        self.app.router.add_get("/guilds", self.guilds_handler)
        self.app.router.add_get("/guilds/{guild_id}/channels", self.channels_handler)
        self.app.router.add_get("/guilds/{guild_id}/roles", self.roles_handler)

    # =========================================================================
    # Request Handlers
    # =========================================================================

    async def health_handler(self, request: web.Request) -> web.Response:
        """
        Handle health check requests.

        "healthy" means the gateway session is ready, "starting" means
        the bot is still logging in or reconnecting.
        """
        try:
            is_connected = self.bot.is_ready()
            status = {
                "status": "healthy" if is_connected else "starting",
                "bot": "DevMob",
                "connected": is_connected,
                "guilds": len(self.bot.guilds),
                "active_interviews": self._active_interviews(),
                "timestamp": datetime.now(CAIRO_TZ).isoformat(),
            }

            logger.debug(f"Health check: {status['status']}")
            return web.json_response(status)

        except Exception as e:
            logger.error("Health Check Error", [
                ("Error", str(e)[:100]),
            ])
            return web.json_response({"status": "error", "error": str(e)}, status=500)

    async def status_handler(self, request: web.Request) -> web.Response:
        config = self.bot.config
        latency = self.bot.latency
        return web.json_response({
            "connected": self.bot.is_ready(),
            "user": str(self.bot.user) if self.bot.user else None,
            "latency_ms": round(latency * 1000) if latency == latency else None,  # NaN before first heartbeat
            "guilds": len(self.bot.guilds),
            "active_interviews": self._active_interviews(),
            "config": {
                "openai_api_key": bool(config.openai_api_key),
                "story_channel_id": config.story_channel_id is not None,
                "join_channel_id": config.join_channel_id is not None,
                "log_channel_id": config.log_channel_id is not None,
                "associate_role_id": config.associate_role_id is not None,
                "outsider_role_id": config.outsider_role_id is not None,
                "owner_id": config.owner_id is not None,
            },
            "timestamp": datetime.now(CAIRO_TZ).isoformat(),
        })

    async def ping_handler(self, request: web.Request) -> web.Response:
        return web.json_response({"message": "pong", "timestamp": datetime.now(CAIRO_TZ).isoformat()})

    async def guilds_handler(self, request: web.Request) -> web.Response:
        return web.json_response([
            {"id": str(g.id), "name": g.name, "member_count": g.member_count}
            for g in self.bot.guilds
        ])

    async def channels_handler(self, request: web.Request) -> web.Response:
        guild = self._get_guild(request)
        if guild is None:
            return web.json_response({"error": "guild not found"}, status=404)
        return web.json_response([
            {"id": str(c.id), "name": c.name, "type": str(c.type)}
            for c in guild.channels
        ])

    async def roles_handler(self, request: web.Request) -> web.Response:
        guild = self._get_guild(request)
        if guild is None:
            return web.json_response({"error": "guild not found"}, status=404)
        return web.json_response([
            {"id": str(r.id), "name": r.name, "position": r.position}
            for r in guild.roles
        ])

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_guild(self, request: web.Request):
        try:
            guild_id = int(request.match_info["guild_id"])
        except ValueError:
            return None
        return self.bot.get_guild(guild_id)

    def _active_interviews(self) -> int:
        onboarding = getattr(self.bot, "onboarding", None)
        return onboarding.active_count if onboarding else 0

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def start(self) -> None:
        """Start the server without blocking; failures are logged, not raised."""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, "0.0.0.0", self.port)
            await site.start()

            logger.tree("Health Server Started", [
                ("Port", str(self.port)),
                ("Endpoint", f"http://0.0.0.0:{self.port}/health"),
            ], emoji="🏥")

        except Exception as e:
            logger.error("Health Server Startup Failed", [
                ("Port", str(self.port)),
                ("Error", str(e)[:100]),
            ])

    async def stop(self) -> None:
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            logger.info("Health check server stopped")


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["HealthCheckServer"]

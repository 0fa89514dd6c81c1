"""
DevMob Onboarding Bot - Main Bot Class
======================================

Discord client for the DevMob server: invite tracking, onboarding
interviews, generated member stories and Associate/Outsider roles.

Features:
- Invite attribution on member join
- Private-thread interviews started with /join
- Story generation and announcement
- Health and debug HTTP endpoints
- Error reports to the audit-log channel

Server: the DevMob
"""

from datetime import datetime
from typing import Optional

import discord
from discord.ext import commands

from devmob.core.config import Config, get_config
from devmob.core.health import HealthCheckServer
from devmob.core.logger import logger
from devmob.core.storage import InviteHistoryStore, StoryStore
from devmob.services.ai import INTERVIEW_QUESTIONS, StoryGenerator
from devmob.services.audit import AuditLogService
from devmob.services.invites import InviteAttributor
from devmob.services.onboarding import (
    Announcer,
    InterviewOrchestrator,
    MembershipClassifier,
    OnboardingService,
    RoleManager,
)


# =============================================================================
# DevMobBot Class
# =============================================================================

class DevMobBot(commands.Bot):
    """
    Main Discord bot class.

    SERVICE INITIALIZATION ORDER:
    1. setup_hook (before the gateway connects):
       - Stores, generator, attributor, onboarding services
       - Command and event cog loading
       - Command tree syncing

    2. on_ready (first time only):
       - Error webhook
       - Health Check Server
    """

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or get_config()

        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.invites = True

        super().__init__(
            command_prefix="!",
            intents=intents,
            help_command=None,
        )

        self.start_time: datetime = datetime.now()

        # Service placeholders
        self.stories: Optional[StoryStore] = None
        self.invite_history: Optional[InviteHistoryStore] = None
        self.generator: Optional[StoryGenerator] = None
        self.attributor: Optional[InviteAttributor] = None
        self.classifier: Optional[MembershipClassifier] = None
        self.roles: Optional[RoleManager] = None
        self.audit: Optional[AuditLogService] = None
        self.onboarding: Optional[OnboardingService] = None
        self.health_server: Optional[HealthCheckServer] = None

        # Ready state guard
        self._ready_initialized: bool = False

        logger.info("Bot Instance Created")

    # =========================================================================
    # Setup Hook
    # =========================================================================

    async def setup_hook(self) -> None:
        """Build services, load cogs and sync commands before on_ready."""
        self._init_services()

        from devmob.commands import COMMAND_COGS
        for cog in COMMAND_COGS:
            try:
                await self.load_extension(cog)
                logger.info(f"Cog Loaded: {cog.split('.')[-1]}")
            except Exception as e:
                logger.error("Failed to Load Cog", [("Cog", cog), ("Error", str(e))])

        from devmob.events import EVENT_COGS
        for cog in EVENT_COGS:
            try:
                await self.load_extension(cog)
                logger.debug(f"Event Cog Loaded: {cog.split('.')[-1]}")
            except Exception as e:
                logger.error("Failed to Load Event Cog", [("Cog", cog), ("Error", str(e))])

        try:
            synced = await self.tree.sync()
            logger.tree("Commands Synced", [("Count", str(len(synced)))], emoji="✅")
        except discord.HTTPException as e:
            logger.error("Command Sync Failed", [("Error", str(e))])

    # =========================================================================
    # Service Initialization
    # =========================================================================

    def _init_services(self) -> None:
        """Wire every service with the loaded config."""
        config = self.config

        self.stories = StoryStore(config.data_dir)
        self.invite_history = InviteHistoryStore(config.data_dir)
        self.generator = StoryGenerator(config)
        self.attributor = InviteAttributor(self.stories, use_fallback=config.invite_fallback)
        self.classifier = MembershipClassifier(self, self.stories, config.story_channel_id, config.story_scan_limit)
        self.roles = RoleManager(config.associate_role_id, config.outsider_role_id)
        self.audit = AuditLogService(self, config.log_channel_id)

        orchestrator = InterviewOrchestrator(
            questions=INTERVIEW_QUESTIONS,
            timeout=config.interview_timeout,
            poll_interval=config.answer_poll_interval,
            freshness=config.answer_freshness,
            story_channel_id=config.story_channel_id,
        )

        self.onboarding = OnboardingService(
            self,
            config,
            stories=self.stories,
            invite_history=self.invite_history,
            attributor=self.attributor,
            generator=self.generator,
            classifier=self.classifier,
            roles=self.roles,
            announcer=Announcer(self, config.story_channel_id),
            orchestrator=orchestrator,
            audit=self.audit,
        )

        self.health_server = HealthCheckServer(self, config.http_port)

        logger.tree("ALL SERVICES INITIALIZED", [
            ("Story Generator", "✓ Ready" if self.generator.enabled else "✗ Placeholder only"),
            ("Onboarding", "✓ Enabled" if config.onboarding_enabled else "✗ Disabled"),
            ("Audit Log", "✓ Enabled" if self.audit.enabled else "✗ Disabled"),
            ("Data Dir", str(config.data_dir)),
        ], emoji="🚀")

    # =========================================================================
    # On Ready
    # =========================================================================

    async def on_ready(self) -> None:
        if self._ready_initialized:
            logger.info("Bot Reconnected (skipping re-initialization)")
            return

        self._ready_initialized = True

        if not self.user:
            return

        logger.tree("BOT ONLINE", [
            ("Name", self.user.name),
            ("ID", str(self.user.id)),
            ("Guilds", str(len(self.guilds))),
        ], emoji="🚀")

        if self.config.error_webhook_url:
            logger.set_webhook(self.config.error_webhook_url)

        await self.health_server.start()

        logger.tree("DEVMOB READY", [
            ("Invite Snapshots", str(sum(1 for g in self.guilds if self.attributor.is_initialized(g.id)))),
            ("Stories On File", str(await self.stories.count())),
            ("Health Server", f"Port {self.config.http_port}"),
        ], emoji="🔥")

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def shutdown(self) -> None:
        """Graceful shutdown with proper cleanup."""
        logger.info("Initiating Graceful Shutdown")

        if self.onboarding:
            await self.onboarding.shutdown()

        if self.health_server:
            await self.health_server.stop()

        await super().close()

        logger.tree("SHUTDOWN COMPLETE", [
            ("Uptime", str(datetime.now() - self.start_time)),
        ], emoji="🛑")

    async def close(self) -> None:
        await self.shutdown()


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["DevMobBot"]

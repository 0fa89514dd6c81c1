"""
DevMob Onboarding Bot - Member Events
=====================================

Member joins, leaves and role updates, and gateway connection state.

Server: the DevMob
"""

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from devmob.core.logger import logger

if TYPE_CHECKING:
    from devmob.bot import DevMobBot


class MemberEvents(commands.Cog):
    """Member and connection event handlers."""

    def __init__(self, bot: "DevMobBot") -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        """Hand every human arrival to the onboarding service."""
        if member.bot:
            logger.debug(f"Bot joined, skipping onboarding: {member}")
            return

        logger.tree("Member Arrived", [
            ("User", f"{member.name} ({member.id})"),
            ("Guild", member.guild.name),
            ("Account Created", member.created_at.strftime("%Y-%m-%d")),
        ], emoji="👋")

        await self.bot.onboarding.handle_member_join(member)

    @commands.Cog.listener()
    async def on_member_update(self, before: discord.Member, after: discord.Member) -> None:
        """The cache now holds the member's real roles."""
        if before.roles != after.roles:
            self.bot.onboarding.roles.forget(after.id)

    @commands.Cog.listener()
    async def on_member_remove(self, member: discord.Member) -> None:
        self.bot.onboarding.forget_member(member.id)
        logger.debug(f"Member left: {member} ({member.id})")

    @commands.Cog.listener()
    async def on_disconnect(self) -> None:
        logger.warning("Gateway Disconnected - discord.py will reconnect")

    @commands.Cog.listener()
    async def on_resumed(self) -> None:
        logger.info("Gateway Session Resumed")


async def setup(bot: "DevMobBot") -> None:
    """Add the member events cog to the bot."""
    await bot.add_cog(MemberEvents(bot))
    logger.debug("Member Events Loaded")

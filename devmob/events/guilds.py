"""
DevMob Onboarding Bot - Guild Events
====================================

Keeps the invite snapshots in step with the guild.

DESIGN:
    on_guild_available fires for every guild on connect (and after an
    outage), on_guild_join when the bot is added somewhere new. Both take
    a fresh snapshot. Invite create/delete events patch the snapshot in
    between joins.

Server: the DevMob
"""

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from devmob.core.logger import logger

if TYPE_CHECKING:
    from devmob.bot import DevMobBot


class GuildEvents(commands.Cog):
    """Guild availability and invite lifecycle handlers."""

    def __init__(self, bot: "DevMobBot") -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_guild_available(self, guild: discord.Guild) -> None:
        await self.bot.attributor.initialize(guild)

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.tree("Joined Guild", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("Members", str(guild.member_count)),
        ], emoji="🏙️")
        await self.bot.attributor.initialize(guild)

    @commands.Cog.listener()
    async def on_invite_create(self, invite: discord.Invite) -> None:
        self.bot.attributor.remember_invite(invite)

    @commands.Cog.listener()
    async def on_invite_delete(self, invite: discord.Invite) -> None:
        self.bot.attributor.forget_invite(invite)


async def setup(bot: "DevMobBot") -> None:
    await bot.add_cog(GuildEvents(bot))
    logger.debug("Guild Events Loaded")

"""
DevMob Onboarding Bot - Invite Command
======================================

/invite shows who brought a member in and when they joined.

Server: the DevMob
"""

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from devmob.core.config import EmbedColors
from devmob.core.logger import logger
from devmob.utils.interaction import handle_command_error, safe_respond

if TYPE_CHECKING:
    from devmob.bot import DevMobBot


class InviteCog(commands.Cog):
    """Invite history lookup."""

    def __init__(self, bot: "DevMobBot") -> None:
        self.bot = bot

    @app_commands.command(name="invite", description="Show who invited a member")
    @app_commands.describe(member="The member to look up")
    @app_commands.guild_only()
    async def invite(self, interaction: discord.Interaction, member: discord.Member) -> None:
        try:
            record = await self.bot.invite_history.get(member.id)

            logger.tree("/invite", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Target", f"{member.name} ({member.id})"),
                ("Record", "Found" if record else "None"),
            ], emoji="🔎")

            if record is None:
                await safe_respond(interaction, f"No invite record for {member.mention}.")
                return

            embed = discord.Embed(
                title="🔗 Invite Record",
                color=EmbedColors.GREEN if record.known else EmbedColors.ORANGE,
            )
            embed.add_field(name="Member", value=member.mention, inline=True)
            embed.add_field(
                name="Invited By",
                value=f"<@{record.inviter_id}> ({record.inviter_name})" if record.known else "Unknown",
                inline=True,
            )
            embed.add_field(name="Invite Code", value=f"`{record.invite_code}`" if record.invite_code else "-", inline=True)

            joined_at = record.joined_at
            embed.add_field(
                name="Joined",
                value=discord.utils.format_dt(joined_at, "F") if joined_at else record.join_date or "-",
                inline=False,
            )
            await safe_respond(interaction, embed=embed)

        except Exception as e:
            await handle_command_error(self.bot, interaction, e, "invite")


async def setup(bot: "DevMobBot") -> None:
    await bot.add_cog(InviteCog(bot))
    logger.debug("Invite Command Loaded")

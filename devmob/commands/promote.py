"""
DevMob Onboarding Bot - Promote Command
=======================================

/promote forces the Associate role onto a member (operators only).

Server: the DevMob
"""

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from devmob.core.config import has_operator_access
from devmob.core.logger import logger
from devmob.utils.interaction import handle_command_error, safe_respond

if TYPE_CHECKING:
    from devmob.bot import DevMobBot


class PromoteCog(commands.Cog):
    """Manual promotion to Associate."""

    def __init__(self, bot: "DevMobBot") -> None:
        self.bot = bot

    @app_commands.command(name="promote", description="Promote a member to Associate")
    @app_commands.describe(member="The member to promote")
    @app_commands.guild_only()
    async def promote(self, interaction: discord.Interaction, member: discord.Member) -> None:
        try:
            if not has_operator_access(interaction.user, self.bot.config):
                logger.tree("/promote Denied", [
                    ("User", f"{interaction.user.name} ({interaction.user.id})"),
                    ("Reason", "Not owner or administrator"),
                ], emoji="🚫")
                await safe_respond(interaction, "You don't have permission to use this command.")
                return

            await interaction.response.defer(ephemeral=True, thinking=True)
            promoted = await self.bot.roles.promote_to_associate(
                member, reason=f"Promoted by {interaction.user} ({interaction.user.id})"
            )

            logger.tree("/promote", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Target", f"{member.name} ({member.id})"),
                ("Associate", "Yes" if promoted else "No"),
            ], emoji="⬆️")

            if promoted:
                await safe_respond(interaction, f"{member.mention} is now an Associate.")
            else:
                await safe_respond(interaction, f"Could not promote {member.mention}. Check the role setup and bot permissions.")

        except Exception as e:
            await handle_command_error(self.bot, interaction, e, "promote")


async def setup(bot: "DevMobBot") -> None:
    await bot.add_cog(PromoteCog(bot))
    logger.debug("Promote Command Loaded")

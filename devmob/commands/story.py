"""
DevMob Onboarding Bot - Story Commands
======================================

/story shows a member's biography; /deletestory removes it (operators).

Server: the DevMob
"""

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from devmob.core.config import EmbedColors, has_operator_access
from devmob.core.constants import EMBED_DESCRIPTION_LIMIT
from devmob.core.logger import logger
from devmob.services.ai import extract_story_title
from devmob.utils.interaction import handle_command_error, safe_respond

if TYPE_CHECKING:
    from devmob.bot import DevMobBot


class StoryCog(commands.Cog):
    """Biography lookup and removal."""

    def __init__(self, bot: "DevMobBot") -> None:
        self.bot = bot

    # =========================================================================
    # /story
    # =========================================================================

    @app_commands.command(name="story", description="Show a member's DevMob story")
    @app_commands.describe(member="Whose story to show")
    @app_commands.guild_only()
    async def story(self, interaction: discord.Interaction, member: discord.Member) -> None:
        try:
            await interaction.response.defer(ephemeral=True, thinking=True)

            text = await self.bot.stories.get(member.id)
            source = "file"
            if text is None:
                text = await self.bot.classifier.find_announced_story(member.id)
                source = "channel"

            logger.tree("/story", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Target", f"{member.name} ({member.id})"),
                ("Found", source if text else "No"),
            ], emoji="📖")

            if not text:
                await safe_respond(interaction, f"No story found for {member.mention}.")
                return

            embed = discord.Embed(
                title=extract_story_title(text),
                description=text[:EMBED_DESCRIPTION_LIMIT],
                color=EmbedColors.GREEN,
            )
            embed.set_author(name=member.display_name, icon_url=member.display_avatar.url)
            await safe_respond(interaction, embed=embed)

        except Exception as e:
            await handle_command_error(self.bot, interaction, e, "story")

    # =========================================================================
    # /deletestory
    # =========================================================================

    @app_commands.command(name="deletestory", description="Delete a member's stored story")
    @app_commands.describe(member="Whose story to delete")
    @app_commands.guild_only()
    async def deletestory(self, interaction: discord.Interaction, member: discord.Member) -> None:
        try:
            if not has_operator_access(interaction.user, self.bot.config):
                logger.tree("/deletestory Denied", [
                    ("User", f"{interaction.user.name} ({interaction.user.id})"),
                    ("Reason", "Not owner or administrator"),
                ], emoji="🚫")
                await safe_respond(interaction, "You don't have permission to use this command.")
                return

            removed = await self.bot.stories.delete(member.id)
            logger.tree("/deletestory", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Target", f"{member.name} ({member.id})"),
                ("Removed", "Yes" if removed else "No"),
            ], emoji="🗑️")

            if removed:
                await safe_respond(interaction, f"Story for {member.mention} deleted.")
            else:
                await safe_respond(interaction, f"{member.mention} has no stored story.")

        except Exception as e:
            await handle_command_error(self.bot, interaction, e, "deletestory")


async def setup(bot: "DevMobBot") -> None:
    await bot.add_cog(StoryCog(bot))
    logger.debug("Story Commands Loaded")

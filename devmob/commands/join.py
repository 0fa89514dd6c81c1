"""
DevMob Onboarding Bot - Join Command
====================================

/join starts the onboarding interview.

Only works in the interview-entry channel. The interview itself runs in
a private thread in the background; the command answers right away.

Server: the DevMob
"""

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from devmob.core.logger import logger
from devmob.services.onboarding import JoinOutcome
from devmob.utils.interaction import handle_command_error, safe_respond

if TYPE_CHECKING:
    from devmob.bot import DevMobBot


OUTCOME_REPLIES = {
    JoinOutcome.DISABLED: "Onboarding is not set up on this server yet.",
    JoinOutcome.ALREADY_MEMBER: "You're already part of the family.",
    JoinOutcome.RETURNING: "Welcome back! The family remembers you.",
    JoinOutcome.SESSION_ACTIVE: "Your interview is already running. Check your onboarding thread.",
    JoinOutcome.STARTED: "Your interview is starting. Check the private thread that just opened.",
}


class JoinCog(commands.Cog):
    """Interview entry point."""

    def __init__(self, bot: "DevMobBot") -> None:
        self.bot = bot

    @app_commands.command(name="join", description="Start your DevMob onboarding interview")
    @app_commands.guild_only()
    async def join(self, interaction: discord.Interaction) -> None:
        try:
            await interaction.response.defer(ephemeral=True, thinking=True)

            outcome = await self.bot.onboarding.handle_join_command(interaction.user, interaction.channel)

            if outcome is JoinOutcome.WRONG_CHANNEL:
                reply = f"Use this command in <#{self.bot.config.join_channel_id}>."
            else:
                reply = OUTCOME_REPLIES[outcome]

            logger.tree("/join", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Channel", str(getattr(interaction.channel, "name", "?"))),
                ("Outcome", outcome.value),
            ], emoji="🎟️")

            await safe_respond(interaction, reply)

        except Exception as e:
            await handle_command_error(self.bot, interaction, e, "join")


async def setup(bot: "DevMobBot") -> None:
    await bot.add_cog(JoinCog(bot))
    logger.debug("Join Command Loaded")

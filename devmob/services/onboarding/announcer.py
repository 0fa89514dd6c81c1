"""
DevMob Onboarding Bot - Announcer
=================================

Posts stories and welcome-back messages.

Every method catches its own Discord errors and returns None on failure,
so a missing channel or permission never stops the rest of onboarding.

Server: the DevMob
"""

from typing import Optional

import discord

from devmob.core.config import EmbedColors
from devmob.core.constants import (
    EMBED_DESCRIPTION_LIMIT,
    MEMBER_ID_FOOTER_PREFIX,
    RETURN_FOOTER,
    STORY_FOOTER_INVITED,
    STORY_FOOTER_NO_INVITE,
)
from devmob.core.logger import logger
from devmob.services.ai.service import extract_story_title
from devmob.utils.discord_errors import log_http_error


class Announcer:
    """Story channel and entry channel messages."""

    def __init__(self, bot, story_channel_id: Optional[int]) -> None:
        self.bot = bot
        self.story_channel_id = story_channel_id

    def _story_channel(self):
        if not self.story_channel_id:
            return None
        channel = self.bot.get_channel(self.story_channel_id)
        if channel is None:
            logger.warning("Story Channel Not Found", [("Channel ID", str(self.story_channel_id))])
        return channel

    @staticmethod
    def _footer(member: discord.Member, suffix: str) -> str:
        return f"{MEMBER_ID_FOOTER_PREFIX} {member.id} | {suffix}"

    # =========================================================================
    # Story Channel
    # =========================================================================

    async def announce_story(self, member: discord.Member, story: str, has_inviter: bool) -> Optional[discord.Message]:
        """Post a member's biography to the story channel."""
        channel = self._story_channel()
        if channel is None:
            return None

        embed = discord.Embed(
            title=f"🎭 {extract_story_title(story)}",
            description=story[:EMBED_DESCRIPTION_LIMIT],
            color=EmbedColors.GREEN if has_inviter else EmbedColors.ORANGE,
            timestamp=discord.utils.utcnow(),
        )
        embed.set_thumbnail(url=member.display_avatar.url)
        embed.set_footer(text=self._footer(member, STORY_FOOTER_INVITED if has_inviter else STORY_FOOTER_NO_INVITE))

        try:
            message = await channel.send(content=member.mention, embed=embed)
        except discord.HTTPException as e:
            log_http_error(e, "Announce Story", [
                ("Member", f"{member.name} ({member.id})"),
                ("Channel ID", str(self.story_channel_id)),
            ])
            return None

        logger.tree("Story Announced", [
            ("Member", f"{member.name} ({member.id})"),
            ("Invited", "Yes" if has_inviter else "No"),
        ], emoji="📣")
        return message

    async def announce_return(self, member: discord.Member) -> Optional[discord.Message]:
        """Post a welcome-back notice for a returning member to the story channel."""
        channel = self._story_channel()
        if channel is None:
            return None

        embed = self._welcome_back_embed(member)
        embed.set_footer(text=self._footer(member, RETURN_FOOTER))
        try:
            return await channel.send(embed=embed)
        except discord.HTTPException as e:
            log_http_error(e, "Announce Return", [("Member", f"{member.name} ({member.id})")])
            return None

    # =========================================================================
    # Entry Channel
    # =========================================================================

    async def welcome_back(self, channel, member: discord.Member) -> Optional[discord.Message]:
        """Welcome a returning member in the channel they used."""
        if channel is None:
            return None
        try:
            return await channel.send(embed=self._welcome_back_embed(member))
        except discord.HTTPException as e:
            log_http_error(e, "Welcome Back", [("Member", f"{member.name} ({member.id})")])
            return None

    @staticmethod
    def _welcome_back_embed(member: discord.Member) -> discord.Embed:
        embed = discord.Embed(
            title="🎩 Welcome Back",
            description=f"{member.mention} is back in the Underworld. The family remembers you.",
            color=EmbedColors.GREEN,
        )
        embed.set_thumbnail(url=member.display_avatar.url)
        return embed


__all__ = ["Announcer"]

"""
DevMob Onboarding Bot - Membership Classifier
=============================================

Decides whether a member has been through onboarding before.

DESIGN:
    A member is returning when the story store has their biography or
    when a recent message in the story channel refers to them. Channel
    matches are by member id only:
    - the message mentions the member
    - an embed description contains <@id> or <@!id>
    - an embed footer carries "Member ID: <id>" (written on every story)

    Names are never compared, so two members with overlapping usernames
    cannot be confused.

    /story falls back to the announced biography. Only story embeds count
    there (footer ending in the invited / no-invite marker); welcome-back
    notices carry the same member id but no biography.

Server: the DevMob
"""

import re
from typing import Optional

import discord

from devmob.core.constants import MEMBER_ID_FOOTER_PREFIX, STORY_FOOTER_INVITED, STORY_FOOTER_NO_INVITE
from devmob.core.logger import logger
from devmob.core.storage import StoryStore
from devmob.utils.discord_errors import log_http_error

MENTION_RE = re.compile(r"<@!?(\d+)>")
FOOTER_ID_RE = re.compile(re.escape(MEMBER_ID_FOOTER_PREFIX) + r"\s*(\d+)")


def message_refers_to(message: discord.Message, member_id: int) -> bool:
    """Whether ``message`` names ``member_id`` by mention, embed mention or footer id."""
    if any(user.id == member_id for user in message.mentions):
        return True
    if message.content and _ids_in(MENTION_RE, message.content, member_id):
        return True

    for embed in message.embeds:
        if embed.description and _ids_in(MENTION_RE, embed.description, member_id):
            return True
        footer_text = embed.footer.text if embed.footer else None
        if footer_text and _ids_in(FOOTER_ID_RE, footer_text, member_id):
            return True
    return False


def _ids_in(pattern: re.Pattern, text: str, member_id: int) -> bool:
    return any(int(match) == member_id for match in pattern.findall(text))


def is_story_embed(embed: discord.Embed) -> bool:
    """Whether ``embed`` is a biography announcement rather than a notice."""
    footer_text = embed.footer.text if embed.footer else None
    if not footer_text or not embed.description:
        return False
    return footer_text.endswith((STORY_FOOTER_INVITED, STORY_FOOTER_NO_INVITE))


# =============================================================================
# Membership Classifier
# =============================================================================

class MembershipClassifier:
    """
    Returning-member detection.

    Attributes:
        story_channel_id: Channel scanned for announcements.
        scan_limit: Number of recent messages scanned.
    """

    def __init__(self, bot, story_store: StoryStore, story_channel_id: Optional[int], scan_limit: int) -> None:
        self.bot = bot
        self._stories = story_store
        self.story_channel_id = story_channel_id
        self.scan_limit = scan_limit

    def _story_channel(self):
        if not self.story_channel_id:
            return None
        return self.bot.get_channel(self.story_channel_id)

    async def is_returning(self, member: discord.Member) -> bool:
        if await self._stories.has(member.id):
            logger.debug(f"Returning member {member.id}: story on file")
            return True

        if await self.find_announcement(member.id) is not None:
            logger.debug(f"Returning member {member.id}: found in story channel")
            return True
        return False

    async def find_announcement(self, member_id: int) -> Optional[discord.Message]:
        """Most recent story-channel message that refers to the member, if any."""
        channel = self._story_channel()
        if channel is None:
            return None

        try:
            async for message in channel.history(limit=self.scan_limit):
                if message_refers_to(message, member_id):
                    return message
        except discord.HTTPException as e:
            log_http_error(e, "Scan Story Channel", [
                ("Channel ID", str(self.story_channel_id)),
                ("Member ID", str(member_id)),
            ])
        return None

    async def find_announced_story(self, member_id: int) -> Optional[str]:
        """Story text from the member's announcement embed, if one is in range."""
        channel = self._story_channel()
        if channel is None:
            return None

        try:
            async for message in channel.history(limit=self.scan_limit):
                if not message_refers_to(message, member_id):
                    continue
                for embed in message.embeds:
                    if is_story_embed(embed):
                        return embed.description
        except discord.HTTPException as e:
            log_http_error(e, "Scan Story Channel", [
                ("Channel ID", str(self.story_channel_id)),
                ("Member ID", str(member_id)),
            ])
        return None


__all__ = ["MembershipClassifier", "is_story_embed", "message_refers_to"]

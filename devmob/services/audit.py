"""
DevMob Onboarding Bot - Audit Log Service
=========================================

Error reports posted to the audit-log channel for operators.

Server: the DevMob
"""

from typing import List, Optional, Tuple

import discord

from devmob.core.config import EmbedColors
from devmob.core.logger import logger


class AuditLogService:
    """Posts error embeds to LOG_CHANNEL_ID. Never raises."""

    def __init__(self, bot, log_channel_id: Optional[int]) -> None:
        self.bot = bot
        self.log_channel_id = log_channel_id

    @property
    def enabled(self) -> bool:
        return self.log_channel_id is not None

    async def report(
        self,
        title: str,
        error: Optional[BaseException] = None,
        context: Optional[List[Tuple[str, str]]] = None,
    ) -> bool:
        """
        Send an error report.

        Returns:
            True if the report reached the channel.
        """
        if not self.enabled:
            return False

        channel = self.bot.get_channel(self.log_channel_id)
        if channel is None:
            logger.warning("Audit Channel Not Found", [("Channel ID", str(self.log_channel_id))])
            return False

        embed = discord.Embed(title=f"❌ {title}", color=EmbedColors.ERROR, timestamp=discord.utils.utcnow())
        if error is not None:
            embed.add_field(name="Error", value=f"`{type(error).__name__}`: {str(error)[:900] or '-'}", inline=False)
        for key, value in context or []:
            embed.add_field(name=key, value=str(value)[:1000] or "-", inline=True)

        try:
            await channel.send(embed=embed)
        except discord.HTTPException as e:
            logger.warning("Audit Report Failed", [
                ("Title", title),
                ("Error", str(e)[:100]),
            ])
            return False
        return True


__all__ = ["AuditLogService"]

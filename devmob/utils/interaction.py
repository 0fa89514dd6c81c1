"""
DevMob Onboarding Bot - Interaction Utilities
=============================================

safe_respond() picks send_message or followup depending on whether the
interaction was already answered or deferred.

Server: the DevMob
"""

from typing import Any, Optional

import discord

from devmob.core.logger import logger
from devmob.utils.error_handler import ErrorHandler


async def safe_respond(
    interaction: discord.Interaction,
    content: Optional[str] = None,
    *,
    embed: Optional[discord.Embed] = None,
    ephemeral: bool = True,
) -> bool:
    """
    Respond to an interaction whether or not it was already answered.

    Returns:
        True if the message was sent.
    """
    kwargs: dict[str, Any] = {"ephemeral": ephemeral}
    if content is not None:
        kwargs["content"] = content
    if embed is not None:
        kwargs["embed"] = embed

    try:
        if not interaction.response.is_done():
            await interaction.response.send_message(**kwargs)
        else:
            await interaction.followup.send(**kwargs)
    except discord.HTTPException as e:
        logger.warning("Interaction Response Failed", [
            ("User", str(interaction.user)),
            ("Error", str(e)[:100]),
        ])
        return False
    return True


async def handle_command_error(
    bot,
    interaction: discord.Interaction,
    error: Exception,
    command: str,
) -> None:
    """
    Catch-all for a slash command body: log, report, answer the user.

    Never raises.
    """
    ErrorHandler.handle(error, f"/{command}", user=interaction.user)

    audit = getattr(bot, "audit", None)
    if audit is not None:
        await audit.report(f"/{command} Failed", error, [
            ("User", f"{interaction.user} ({interaction.user.id})"),
        ])

    await safe_respond(interaction, "Something went wrong. The family has been notified.")


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["safe_respond", "handle_command_error"]

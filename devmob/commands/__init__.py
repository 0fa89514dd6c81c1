"""
DevMob Onboarding Bot - Commands Package
========================================

Slash commands, one cog per module, loaded with load_extension().

Available Commands:
    /join: Start the onboarding interview (entry channel only)
    /story: Show a member's biography
    /invite: Show who invited a member
    /promote: Force the Associate role (owner or admin)
    /deletestory: Remove a stored biography (owner or admin)

Server: the DevMob
"""

# =============================================================================
# Command Cog Registry
# =============================================================================

COMMAND_COGS = [
    "devmob.commands.join",
    "devmob.commands.story",
    "devmob.commands.invite",
    "devmob.commands.promote",
]
"""Command cog module paths; the bot calls load_extension() for each."""


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "COMMAND_COGS",
]

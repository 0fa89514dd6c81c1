"""
DevMob Onboarding Bot - Events Package
======================================

Event handler cogs, loaded with load_extension().

    Event routing:
    - members.py: Member join, gateway disconnect/resume
    - guilds.py: Guild available/join, invite create/delete

Server: the DevMob
"""

# =============================================================================
# Event Cog Registry
# =============================================================================

EVENT_COGS = [
    "devmob.events.members",
    "devmob.events.guilds",
]
"""Event cog module paths; the bot calls load_extension() for each."""


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "EVENT_COGS",
]

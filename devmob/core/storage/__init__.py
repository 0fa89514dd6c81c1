"""
DevMob Onboarding Bot - Storage Package
=======================================

Flat JSON files under DATA_DIR: stories.json and invite_history.json.

Server: the DevMob
"""

from .base import JsonStore
from .stories import StoryStore
from .invite_history import InviteHistoryRecord, InviteHistoryStore


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "JsonStore",
    "StoryStore",
    "InviteHistoryRecord",
    "InviteHistoryStore",
]

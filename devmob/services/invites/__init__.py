"""
DevMob Onboarding Bot - Invites Package
=======================================

Invite snapshots, diffing and inviter resolution.

Server: the DevMob
"""

from .models import InviteUse, InviteDiff, InviterInfo, diff_invites, build_snapshot
from .attributor import InviteAttributor

__all__ = [
    "InviteUse",
    "InviteDiff",
    "InviterInfo",
    "diff_invites",
    "build_snapshot",
    "InviteAttributor",
]

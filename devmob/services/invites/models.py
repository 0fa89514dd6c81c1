"""
DevMob Onboarding Bot - Invite Models
=====================================

Value types for invite snapshots and the diff between two of them.

Server: the DevMob
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence

import discord


# =============================================================================
# Snapshot Entry
# =============================================================================

@dataclass(frozen=True)
class InviteUse:
    """One invite code and its use count at a point in time."""

    code: str
    uses: int
    inviter_id: Optional[int] = None
    inviter_name: str = ""

    @classmethod
    def from_invite(cls, invite: discord.Invite) -> "InviteUse":
        inviter = invite.inviter
        return cls(
            code=invite.code,
            uses=invite.uses or 0,
            inviter_id=inviter.id if inviter else None,
            inviter_name=inviter.name if inviter else "",
        )


Snapshot = Dict[str, InviteUse]


def build_snapshot(invites: Sequence[InviteUse]) -> Snapshot:
    return {invite.code: invite for invite in invites}


# =============================================================================
# Diff
# =============================================================================

@dataclass(frozen=True)
class InviteDiff:
    """
    Result of comparing a fresh invite fetch with the stored snapshot.

    Attributes:
        increased: First invite, in fetch order, whose use count went up.
        fallback: Invite with the highest absolute use count (above zero).
    """

    increased: Optional[InviteUse]
    fallback: Optional[InviteUse]


def diff_invites(previous: Mapping[str, InviteUse], current: Sequence[InviteUse]) -> InviteDiff:
    """
    Compare ``current`` (fetch order) with ``previous``.

    A code missing from ``previous`` counts up from zero, so a brand new
    invite used once is an increase. Ties for the fallback go to the
    earlier invite in fetch order.
    """
    increased: Optional[InviteUse] = None
    fallback: Optional[InviteUse] = None

    for invite in current:
        before = previous.get(invite.code)
        before_uses = before.uses if before else 0

        if increased is None and invite.uses > before_uses:
            increased = invite

        if invite.uses > 0 and (fallback is None or invite.uses > fallback.uses):
            fallback = invite

    return InviteDiff(increased=increased, fallback=fallback)


# =============================================================================
# Resolved Inviter
# =============================================================================

@dataclass(frozen=True)
class InviterInfo:
    """
    Who brought a member in, as fed to the story prompt.

    Empty strings mean unknown; ``unknown()`` is the sentinel for "no
    inviter could be determined".
    """

    name: str = ""
    id: Optional[int] = None
    top_role_name: str = ""
    previous_story: str = ""
    invite_code: str = ""
    via_fallback: bool = False

    @property
    def known(self) -> bool:
        return self.id is not None

    @classmethod
    def unknown(cls) -> "InviterInfo":
        return cls()


__all__ = [
    "InviteUse",
    "Snapshot",
    "build_snapshot",
    "InviteDiff",
    "diff_invites",
    "InviterInfo",
]

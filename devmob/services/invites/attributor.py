"""
DevMob Onboarding Bot - Invite Attributor
=========================================

Works out which invite a joining member used.

DESIGN:
    Discord does not say which invite a member joined through. We keep a
    per-guild snapshot of invite use counts and, on each join, fetch the
    invites again and look for the code whose count went up. The fresh
    fetch always replaces the snapshot.

    Fetch, diff and overwrite run under one asyncio.Lock per guild, so
    two members joining at the same moment are attributed one after the
    other against consistent snapshots.

    Failure modes all degrade to an unknown inviter:
    - Guild never initialized: initialize now, report unknown
    - Missing Manage Server permission (Forbidden)
    - Any other HTTP error from the invites endpoint

Server: the DevMob
"""

import asyncio
from typing import Dict, List, Optional

import discord

from devmob.core.logger import logger
from devmob.core.storage import StoryStore
from devmob.utils.discord_errors import log_http_error

from .models import InviteDiff, InviteUse, InviterInfo, Snapshot, build_snapshot, diff_invites


# =============================================================================
# Invite Attributor
# =============================================================================

class InviteAttributor:
    """
    Per-guild invite snapshots and join attribution.

    Attributes:
        use_fallback: Attribute to the highest-count invite when no count
            went up (INVITE_FALLBACK).
    """

    def __init__(self, story_store: StoryStore, use_fallback: bool = False) -> None:
        self._stories = story_store
        self.use_fallback = use_fallback
        self._snapshots: Dict[int, Snapshot] = {}
        self._locks: Dict[int, asyncio.Lock] = {}

    def _lock_for(self, guild_id: int) -> asyncio.Lock:
        lock = self._locks.get(guild_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[guild_id] = lock
        return lock

    def is_initialized(self, guild_id: int) -> bool:
        return guild_id in self._snapshots

    def snapshot(self, guild_id: int) -> Optional[Snapshot]:
        """Copy of the stored snapshot, or None if the guild was never initialized."""
        stored = self._snapshots.get(guild_id)
        return dict(stored) if stored is not None else None

    # =========================================================================
    # Fetching
    # =========================================================================

    async def _fetch(self, guild: discord.Guild) -> Optional[List[InviteUse]]:
        try:
            invites = await guild.invites()
        except discord.Forbidden as e:
            log_http_error(e, "Fetch Invites", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Hint", "Bot needs Manage Server permission"),
            ])
            return None
        except discord.HTTPException as e:
            log_http_error(e, "Fetch Invites", [("Guild", f"{guild.name} ({guild.id})")])
            return None
        return [InviteUse.from_invite(invite) for invite in invites]

    async def initialize(self, guild: discord.Guild) -> bool:
        """
        Take the baseline snapshot for a guild.

        Returns:
            True if the snapshot was stored.
        """
        async with self._lock_for(guild.id):
            current = await self._fetch(guild)
            if current is None:
                return False
            self._snapshots[guild.id] = build_snapshot(current)

        logger.tree("Invite Snapshot Cached", [
            ("Guild", guild.name),
            ("Invites", str(len(current))),
        ], emoji="🔗")
        return True

    # =========================================================================
    # Attribution
    # =========================================================================

    async def attribute_join(self, member: discord.Member) -> InviterInfo:
        """
        Find the inviter for a member who just joined.

        Always one invites fetch. The snapshot is replaced with the fetch
        result whether or not an inviter was found.
        """
        guild = member.guild

        async with self._lock_for(guild.id):
            current = await self._fetch(guild)
            if current is None:
                return InviterInfo.unknown()

            previous = self._snapshots.get(guild.id)
            self._snapshots[guild.id] = build_snapshot(current)

            if previous is None:
                logger.warning("Invite Snapshot Missing On Join", [
                    ("Guild", guild.name),
                    ("Member", f"{member.name} ({member.id})"),
                    ("Result", "Snapshot initialized, inviter unknown"),
                ])
                return InviterInfo.unknown()

            diff = diff_invites(previous, current)

        chosen, via_fallback = self._choose(diff)
        if chosen is None:
            logger.tree("Invite Not Attributed", [
                ("Member", f"{member.name} ({member.id})"),
                ("Fallback Candidate", diff.fallback.code if diff.fallback else "None"),
            ], emoji="❔")
            return InviterInfo.unknown()

        inviter = await self.resolve_inviter(guild, chosen, via_fallback)

        logger.tree("Invite Attributed", [
            ("Member", f"{member.name} ({member.id})"),
            ("Code", chosen.code),
            ("Uses", str(chosen.uses)),
            ("Inviter", inviter.name or "Unknown"),
            ("Via Fallback", "Yes" if via_fallback else "No"),
        ], emoji="🔗")
        return inviter

    def _choose(self, diff: InviteDiff):
        if diff.increased is not None:
            return diff.increased, False
        if self.use_fallback and diff.fallback is not None:
            return diff.fallback, True
        return None, False

    async def resolve_inviter(
        self,
        guild: discord.Guild,
        invite: InviteUse,
        via_fallback: bool = False,
    ) -> InviterInfo:
        """
        Build the inviter's display name, top role and stored biography.

        Returns unknown when the invite has no inviter (vanity URL, widget).
        """
        if invite.inviter_id is None:
            return InviterInfo.unknown()

        name = invite.inviter_name
        top_role_name = ""

        inviter_member = guild.get_member(invite.inviter_id)
        if inviter_member is not None:
            name = inviter_member.display_name
            top_role = inviter_member.top_role
            if top_role is not None and not top_role.is_default():
                top_role_name = top_role.name

        previous_story = await self._stories.get(invite.inviter_id) or ""

        return InviterInfo(
            name=name,
            id=invite.inviter_id,
            top_role_name=top_role_name,
            previous_story=previous_story,
            invite_code=invite.code,
            via_fallback=via_fallback,
        )

    # =========================================================================
    # Invite Events
    # =========================================================================

    def remember_invite(self, invite: discord.Invite) -> None:
        """Add a newly created invite to its guild's snapshot."""
        guild = invite.guild
        if guild is None or guild.id not in self._snapshots:
            return
        self._snapshots[guild.id][invite.code] = InviteUse.from_invite(invite)
        logger.debug(f"Invite cached: {invite.code}")

    def forget_invite(self, invite: discord.Invite) -> None:
        """Drop a deleted invite from its guild's snapshot."""
        guild = invite.guild
        if guild is None or guild.id not in self._snapshots:
            return
        self._snapshots[guild.id].pop(invite.code, None)
        logger.debug(f"Invite removed from cache: {invite.code}")


__all__ = ["InviteAttributor"]

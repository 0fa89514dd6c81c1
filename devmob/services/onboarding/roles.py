"""
DevMob Onboarding Bot - Role Manager
====================================

Associate / Outsider role changes.

DESIGN:
    The two roles are mutually exclusive. discord.py does not touch
    member.roles when add_roles/remove_roles return; the cache only moves
    when the gateway delivers the member update. So after changing a
    member's roles the manager remembers the role set it expects, together
    with the cached set it saw at the time. Later reads use the expected
    set until the cached set changes or a gateway member update arrives
    (forget()), then trust the cache again.

    Granting Associate is always followed by removing Outsider, whatever
    the cache says. Removing a role the member does not hold is a no-op on
    Discord's side.

    Operations on the same member are serialized with a per-member lock,
    dropped as soon as nobody holds or waits on it. Role or id missing:
    logged and skipped. Discord errors: logged, never raised.

Server: the DevMob
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, FrozenSet, Optional, Set, Tuple

import discord

from devmob.core.logger import logger
from devmob.utils.discord_errors import log_http_error


class RoleManager:
    """Associate and Outsider role changes for one server configuration."""

    def __init__(self, associate_role_id: Optional[int], outsider_role_id: Optional[int]) -> None:
        self.associate_role_id = associate_role_id
        self.outsider_role_id = outsider_role_id
        self._locks: Dict[int, asyncio.Lock] = {}
        self._lock_users: Dict[int, int] = {}
        # member id -> (cached role ids when last changed, role ids expected after the change)
        self._expected: Dict[int, Tuple[FrozenSet[int], FrozenSet[int]]] = {}

    @property
    def tracked_count(self) -> int:
        """Members with a live lock or an unconfirmed role change."""
        return len(set(self._locks) | set(self._expected))

    @asynccontextmanager
    async def _member_lock(self, member_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(member_id, asyncio.Lock())
        self._lock_users[member_id] = self._lock_users.get(member_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[member_id] -= 1
            if self._lock_users[member_id] == 0:
                del self._lock_users[member_id]
                del self._locks[member_id]

    def _resolve(self, guild: discord.Guild) -> Tuple[Optional[discord.Role], Optional[discord.Role]]:
        associate = guild.get_role(self.associate_role_id) if self.associate_role_id else None
        outsider = guild.get_role(self.outsider_role_id) if self.outsider_role_id else None
        return associate, outsider

    @staticmethod
    def _cached(member: discord.Member) -> FrozenSet[int]:
        return frozenset(role.id for role in member.roles)

    def _held(self, member: discord.Member) -> Set[int]:
        """Role ids the member holds, counting changes the cache has not seen yet."""
        cached = self._cached(member)
        entry = self._expected.get(member.id)
        if entry is None:
            return set(cached)
        seen, expected = entry
        if cached != seen:
            # Gateway caught up
            del self._expected[member.id]
            return set(cached)
        return set(expected)

    def _remember(self, member: discord.Member, held: Set[int]) -> None:
        cached = self._cached(member)
        if cached == held:
            self._expected.pop(member.id, None)
        else:
            self._expected[member.id] = (cached, frozenset(held))

    def forget(self, member_id: int) -> None:
        """Trust the cache again: the gateway sent a role update, or the member left."""
        self._expected.pop(member_id, None)

    def has_associate(self, member: discord.Member) -> bool:
        return self.associate_role_id is not None and self.associate_role_id in self._held(member)

    # =========================================================================
    # Primitive Changes
    # =========================================================================

    async def _add(self, member: discord.Member, role: discord.Role, held: Set[int], reason: str) -> None:
        try:
            await member.add_roles(role, reason=reason)
        except discord.HTTPException as e:
            log_http_error(e, "Add Role", [
                ("Member", f"{member.name} ({member.id})"),
                ("Role", role.name),
            ])
            return
        held.add(role.id)
        logger.tree("Role Added", [
            ("Member", f"{member.name} ({member.id})"),
            ("Role", role.name),
            ("Reason", reason),
        ], emoji="➕")

    async def _remove(self, member: discord.Member, role: discord.Role, held: Set[int], reason: str) -> None:
        try:
            await member.remove_roles(role, reason=reason)
        except discord.HTTPException as e:
            log_http_error(e, "Remove Role", [
                ("Member", f"{member.name} ({member.id})"),
                ("Role", role.name),
            ])
            return
        held.discard(role.id)
        logger.tree("Role Removed", [
            ("Member", f"{member.name} ({member.id})"),
            ("Role", role.name),
            ("Reason", reason),
        ], emoji="➖")

    async def _enforce_exclusive(
        self,
        member: discord.Member,
        held: Set[int],
        associate: Optional[discord.Role],
        outsider: Optional[discord.Role],
    ) -> None:
        if associate is None or outsider is None:
            return
        if associate.id in held and outsider.id in held:
            await self._remove(member, outsider, held, "Associate and Outsider are exclusive")

    # =========================================================================
    # Operations
    # =========================================================================

    async def promote_to_associate(self, member: discord.Member, reason: str = "Completed onboarding") -> bool:
        """
        Grant Associate and drop Outsider. Idempotent.

        Returns:
            True if the member holds Associate afterwards.
        """
        associate, outsider = self._resolve(member.guild)
        if associate is None:
            logger.warning("Associate Role Not Found", [
                ("Role ID", str(self.associate_role_id)),
                ("Member", f"{member.name} ({member.id})"),
            ])
            return False

        async with self._member_lock(member.id):
            held = self._held(member)
            added = False
            if associate.id not in held:
                await self._add(member, associate, held, reason)
                added = associate.id in held
            if outsider is not None and associate.id in held and (added or outsider.id in held):
                await self._remove(member, outsider, held, reason)
            self._remember(member, held)
            return associate.id in held

    async def assign_outsider(self, member: discord.Member, reason: str = "New arrival") -> bool:
        """
        Grant Outsider to a member who holds neither role.

        Returns:
            True if Outsider was added.
        """
        associate, outsider = self._resolve(member.guild)
        if outsider is None:
            logger.warning("Outsider Role Not Found", [
                ("Role ID", str(self.outsider_role_id)),
                ("Member", f"{member.name} ({member.id})"),
            ])
            return False

        async with self._member_lock(member.id):
            held = self._held(member)
            if outsider.id in held or (associate is not None and associate.id in held):
                await self._enforce_exclusive(member, held, associate, outsider)
                self._remember(member, held)
                return False
            await self._add(member, outsider, held, reason)
            self._remember(member, held)
            return outsider.id in held

    async def ensure_exclusive(self, member: discord.Member) -> None:
        """Remove Outsider from a member who holds both roles."""
        associate, outsider = self._resolve(member.guild)
        async with self._member_lock(member.id):
            held = self._held(member)
            await self._enforce_exclusive(member, held, associate, outsider)
            self._remember(member, held)


__all__ = ["RoleManager"]

"""
DevMob Onboarding Bot - Invite Attribution Tests
================================================

Tests for the snapshot diff and the per-guild attributor.
"""

import asyncio

import discord
import pytest

from devmob.core.storage import StoryStore
from devmob.services.invites import InviteAttributor, InviteUse, diff_invites
from devmob.services.invites.models import build_snapshot

from conftest import FakeMember, http_error, make_invite


def uses(**counts):
    return [InviteUse(code, n, inviter_id=ord(code[0]), inviter_name=f"user-{code}") for code, n in counts.items()]


# =============================================================================
# Diff
# =============================================================================

class TestDiffInvites:
    """Tests for diff_invites()."""

    def test_increase_picks_changed_code(self):
        previous = build_snapshot(uses(A=5, B=2))
        diff = diff_invites(previous, uses(A=5, B=3))
        assert diff.increased.code == "B"

    def test_no_increase_has_fallback_only(self):
        previous = build_snapshot(uses(A=2, B=5))
        diff = diff_invites(previous, uses(A=2, B=5))
        assert diff.increased is None
        assert diff.fallback.code == "B"

    def test_new_code_counts_from_zero(self):
        previous = build_snapshot(uses(A=1))
        diff = diff_invites(previous, uses(A=1, C=1))
        assert diff.increased.code == "C"

    def test_first_increase_in_fetch_order_wins(self):
        previous = build_snapshot(uses(A=1, B=1))
        diff = diff_invites(previous, uses(A=2, B=2))
        assert diff.increased.code == "A"

    def test_fallback_tie_goes_to_earlier_entry(self):
        diff = diff_invites({}, uses(A=3, B=3))
        assert diff.fallback.code == "A"

    def test_unused_invites_are_no_fallback(self):
        diff = diff_invites({}, uses(A=0, B=0))
        assert diff.increased is None
        assert diff.fallback is None


# =============================================================================
# Attributor
# =============================================================================

@pytest.fixture
def stories(tmp_path):
    return StoryStore(tmp_path)


@pytest.fixture
def inviter(guild, associate_role):
    member = FakeMember(77, "vito", roles=[associate_role])
    guild.add_member(member)
    return member


def set_invites(guild, inviter, **counts):
    guild.invites.return_value = [make_invite(code, n, inviter, guild) for code, n in counts.items()]


class TestAttributeJoin:
    """Tests for InviteAttributor.attribute_join()."""

    @pytest.mark.asyncio
    async def test_attributes_increased_invite(self, stories, guild, inviter):
        attributor = InviteAttributor(stories)
        set_invites(guild, inviter, A=5, B=2)
        assert await attributor.initialize(guild) is True

        set_invites(guild, inviter, A=5, B=3)
        result = await attributor.attribute_join(FakeMember(1, "newbie", guild=guild))

        assert result.invite_code == "B"
        assert result.id == inviter.id
        assert result.name == "Vito"
        assert result.top_role_name == "Associate"
        assert result.via_fallback is False

    @pytest.mark.asyncio
    async def test_fallback_only_when_enabled(self, stories, guild, inviter):
        set_invites(guild, inviter, A=2, B=5)

        strict = InviteAttributor(stories)
        await strict.initialize(guild)
        assert (await strict.attribute_join(FakeMember(1, "a", guild=guild))).known is False

        lenient = InviteAttributor(stories, use_fallback=True)
        await lenient.initialize(guild)
        result = await lenient.attribute_join(FakeMember(2, "b", guild=guild))
        assert result.invite_code == "B"
        assert result.via_fallback is True

    @pytest.mark.asyncio
    async def test_second_join_without_change_is_unknown(self, stories, guild, inviter):
        attributor = InviteAttributor(stories)
        set_invites(guild, inviter, A=1)
        await attributor.initialize(guild)

        set_invites(guild, inviter, A=2)
        first = await attributor.attribute_join(FakeMember(1, "a", guild=guild))
        second = await attributor.attribute_join(FakeMember(2, "b", guild=guild))

        assert first.invite_code == "A"
        assert second.known is False

    @pytest.mark.asyncio
    async def test_uninitialized_guild_is_unknown_and_initializes(self, stories, guild, inviter):
        attributor = InviteAttributor(stories)
        set_invites(guild, inviter, A=3)

        result = await attributor.attribute_join(FakeMember(1, "a", guild=guild))

        assert result.known is False
        assert attributor.is_initialized(guild.id)
        assert attributor.snapshot(guild.id)["A"].uses == 3

    @pytest.mark.asyncio
    async def test_forbidden_fetch_keeps_snapshot(self, stories, guild, inviter):
        attributor = InviteAttributor(stories)
        set_invites(guild, inviter, A=1)
        await attributor.initialize(guild)

        guild.invites.side_effect = http_error(403, discord.Forbidden)
        result = await attributor.attribute_join(FakeMember(1, "a", guild=guild))

        assert result.known is False
        assert attributor.snapshot(guild.id)["A"].uses == 1

    @pytest.mark.asyncio
    async def test_initialize_fails_without_permission(self, stories, guild):
        attributor = InviteAttributor(stories)
        guild.invites.side_effect = http_error(403, discord.Forbidden)
        assert await attributor.initialize(guild) is False
        assert attributor.is_initialized(guild.id) is False

    @pytest.mark.asyncio
    async def test_vanity_invite_has_no_inviter(self, stories, guild):
        attributor = InviteAttributor(stories)
        guild.invites.return_value = [make_invite("vanity", 0, None, guild)]
        await attributor.initialize(guild)

        guild.invites.return_value = [make_invite("vanity", 1, None, guild)]
        result = await attributor.attribute_join(FakeMember(1, "a", guild=guild))
        assert result.known is False

    @pytest.mark.asyncio
    async def test_concurrent_joins_are_serialized(self, stories, guild, inviter):
        """Two joins at once each see the snapshot the other left behind."""
        attributor = InviteAttributor(stories)
        set_invites(guild, inviter, A=0, B=0)
        await attributor.initialize(guild)

        fetches = [
            [make_invite("A", 1, inviter, guild), make_invite("B", 0, inviter, guild)],
            [make_invite("A", 1, inviter, guild), make_invite("B", 1, inviter, guild)],
        ]

        async def slow_invites():
            await asyncio.sleep(0)
            return fetches.pop(0)

        guild.invites.side_effect = slow_invites

        first, second = await asyncio.gather(
            attributor.attribute_join(FakeMember(1, "a", guild=guild)),
            attributor.attribute_join(FakeMember(2, "b", guild=guild)),
        )

        assert first.invite_code == "A"
        assert second.invite_code == "B"

    @pytest.mark.asyncio
    async def test_inviter_story_is_included(self, stories, guild, inviter):
        await stories.save(inviter.id, "Vito ran the docks for a decade.")
        attributor = InviteAttributor(stories)
        set_invites(guild, inviter, A=0)
        await attributor.initialize(guild)

        set_invites(guild, inviter, A=1)
        result = await attributor.attribute_join(FakeMember(1, "a", guild=guild))
        assert result.previous_story == "Vito ran the docks for a decade."


class TestInviteEvents:
    """Tests for remember_invite() and forget_invite()."""

    @pytest.mark.asyncio
    async def test_remember_and_forget(self, stories, guild, inviter):
        attributor = InviteAttributor(stories)
        set_invites(guild, inviter, A=1)
        await attributor.initialize(guild)

        attributor.remember_invite(make_invite("NEW", 0, inviter, guild))
        assert "NEW" in attributor.snapshot(guild.id)

        attributor.forget_invite(make_invite("A", 1, inviter, guild))
        assert "A" not in attributor.snapshot(guild.id)

    def test_ignored_for_uninitialized_guild(self, stories, guild, inviter):
        attributor = InviteAttributor(stories)
        attributor.remember_invite(make_invite("NEW", 0, inviter, guild))
        assert attributor.snapshot(guild.id) is None

    def test_snapshot_is_a_copy(self, stories, guild):
        attributor = InviteAttributor(stories)
        attributor._snapshots[guild.id] = {}
        attributor.snapshot(guild.id)["X"] = InviteUse("X", 1)
        assert attributor.snapshot(guild.id) == {}

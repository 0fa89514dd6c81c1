"""
DevMob Onboarding Bot - Membership Classifier Tests
===================================================

Tests for returning-member detection by id.
"""

import discord
import pytest

from devmob.core.storage import StoryStore
from devmob.services.onboarding import Announcer, MembershipClassifier, is_story_embed, message_refers_to

from conftest import STORY_CHANNEL_ID, FakeMember, FakeMessage


def story_embed(description, footer=None):
    embed = discord.Embed(description=description)
    if footer:
        embed.set_footer(text=footer)
    return embed


class TestMessageRefersTo:
    """Tests for message_refers_to()."""

    def test_mention_list(self):
        message = FakeMessage(FakeMember(1, "bot"), mentions=[FakeMember(123, "a")])
        assert message_refers_to(message, 123)

    def test_content_mention_both_forms(self):
        assert message_refers_to(FakeMessage(None, "<@123> welcome"), 123)
        assert message_refers_to(FakeMessage(None, "<@!123> welcome"), 123)

    def test_prefix_id_does_not_match(self):
        message = FakeMessage(None, "<@1234>", embeds=[story_embed("hi", "Member ID: 1234 | 🟢 Invited")])
        assert not message_refers_to(message, 123)
        assert message_refers_to(message, 1234)

    def test_embed_description_mention(self):
        assert message_refers_to(FakeMessage(None, embeds=[story_embed("Welcome <@!55> to the family")]), 55)

    def test_footer_id(self):
        message = FakeMessage(None, embeds=[story_embed("story", "Member ID: 88 | Returning member")])
        assert message_refers_to(message, 88)

    def test_name_is_not_enough(self):
        message = FakeMessage(None, "tony joined", embeds=[story_embed("tony the accountant")])
        assert not message_refers_to(message, 10)


class TestMembershipClassifier:
    """Tests for MembershipClassifier."""

    @pytest.fixture
    def classifier(self, mock_bot, tmp_path):
        return MembershipClassifier(mock_bot, StoryStore(tmp_path), STORY_CHANNEL_ID, scan_limit=50)

    @pytest.mark.asyncio
    async def test_new_member(self, classifier):
        assert await classifier.is_returning(FakeMember(10, "tony")) is False

    @pytest.mark.asyncio
    async def test_stored_story(self, classifier):
        await classifier._stories.save(10, "legend")
        assert await classifier.is_returning(FakeMember(10, "tony")) is True

    @pytest.mark.asyncio
    async def test_announced_story(self, classifier, story_channel):
        await story_channel.send(embed=story_embed("The accountant's tale", "Member ID: 10 | 🟢 Invited"))
        assert await classifier.is_returning(FakeMember(10, "tony")) is True
        assert await classifier.find_announced_story(10) == "The accountant's tale"

    @pytest.mark.asyncio
    async def test_history_failure_is_not_returning(self, classifier, story_channel):
        story_channel.history_failures = 1
        assert await classifier.is_returning(FakeMember(10, "tony")) is False

    @pytest.mark.asyncio
    async def test_no_channel_configured(self, mock_bot, tmp_path):
        classifier = MembershipClassifier(mock_bot, StoryStore(tmp_path), None, scan_limit=50)
        assert await classifier.find_announcement(10) is None

    @pytest.mark.asyncio
    async def test_welcome_back_notice_is_not_a_story(self, classifier, mock_bot, guild):
        member = guild.add_member(FakeMember(300, "carlo"))
        announcer = Announcer(mock_bot, STORY_CHANNEL_ID)

        await announcer.announce_story(member, "**The Quiet Accountant**\nCarlo kept the books.", has_inviter=False)
        await announcer.announce_return(member)

        assert await classifier.find_announced_story(300) == "**The Quiet Accountant**\nCarlo kept the books."

    @pytest.mark.asyncio
    async def test_only_notices_means_no_story(self, classifier, story_channel):
        await story_channel.send(embed=story_embed("<@10> is back", "Member ID: 10 | Returning member"))
        assert await classifier.is_returning(FakeMember(10, "tony")) is True
        assert await classifier.find_announced_story(10) is None


class TestIsStoryEmbed:
    """Tests for is_story_embed()."""

    @pytest.mark.parametrize("footer,expected", [
        ("Member ID: 1 | 🟢 Invited", True),
        ("Member ID: 1 | 🟠 No invite", True),
        ("Member ID: 1 | Returning member", False),
        (None, False),
    ])
    def test_footer_markers(self, footer, expected):
        assert is_story_embed(story_embed("text", footer)) is expected

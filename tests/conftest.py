"""
DevMob Onboarding Bot - Test Fixtures
=====================================

Shared fakes and fixtures for all tests.

The fakes stand in for gateway objects (members, channels, guilds) so the
services can run against real discord.py types (Embed, exceptions)
without a connection.
"""

import asyncio
import itertools
import os
import sys
import tempfile
from datetime import timedelta
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Keep test logs out of the working tree
os.environ.setdefault("LOGS_DIR", tempfile.mkdtemp(prefix="devmob-test-logs-"))

import discord  # noqa: E402

from devmob.core.config import Config  # noqa: E402


# =============================================================================
# Clock
# =============================================================================

_BASE_TIME = discord.utils.utcnow()
_ticks = itertools.count(1)


def next_timestamp():
    """Strictly increasing timestamps shared by every fake message."""
    return _BASE_TIME + timedelta(milliseconds=next(_ticks))


def http_error(status: int = 500, cls=discord.HTTPException):
    response = MagicMock(status=status, reason="Test Error")
    return cls(response, "test failure")


# =============================================================================
# Fakes
# =============================================================================

class FakeRole:
    def __init__(self, id: int, name: str, position: int = 1, default: bool = False):
        self.id = id
        self.name = name
        self.position = position
        self._default = default
        self.mention = f"<@&{id}>"

    def is_default(self) -> bool:
        return self._default

    def __repr__(self):
        return f"FakeRole({self.name})"


class FakeMember:
    """Member whose add_roles/remove_roles mutate ``roles`` immediately."""

    def __init__(self, id: int, name: str, guild=None, roles=None, bot: bool = False, administrator: bool = False):
        self.id = id
        self.name = name
        self.display_name = name.title()
        self.guild = guild
        self.bot = bot
        self.mention = f"<@{id}>"
        self.roles = list(roles or [])
        self.joined_at = discord.utils.utcnow()
        self.created_at = discord.utils.utcnow()
        self.display_avatar = SimpleNamespace(url=f"https://cdn.example/avatars/{id}.png")
        self.guild_permissions = SimpleNamespace(administrator=administrator)
        self.add_calls = 0
        self.remove_calls = 0

    @property
    def top_role(self):
        if not self.roles:
            return FakeRole(0, "@everyone", position=0, default=True)
        return max(self.roles, key=lambda r: r.position)

    async def add_roles(self, *roles, reason=None):
        self.add_calls += 1
        for role in roles:
            if role not in self.roles:
                self.roles.append(role)

    async def remove_roles(self, *roles, reason=None):
        self.remove_calls += 1
        for role in roles:
            if role in self.roles:
                self.roles.remove(role)

    def role_ids(self):
        return {r.id for r in self.roles}

    def __str__(self):
        return self.name


class GatewayMember(FakeMember):
    """
    Member that behaves like discord.py: add_roles/remove_roles change the
    server-side roles only, and ``roles`` catches up on sync(), when the
    gateway delivers the member update.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.server_roles = list(self.roles)

    async def add_roles(self, *roles, reason=None):
        self.add_calls += 1
        for role in roles:
            if role not in self.server_roles:
                self.server_roles.append(role)

    async def remove_roles(self, *roles, reason=None):
        self.remove_calls += 1
        for role in roles:
            if role in self.server_roles:
                self.server_roles.remove(role)

    def sync(self):
        self.roles = list(self.server_roles)

    def server_role_ids(self):
        return {r.id for r in self.server_roles}


class FakeMessage:
    def __init__(self, author, content: str = "", embeds=None, mentions=None, created_at=None):
        self.id = next(_ticks)
        self.author = author
        self.content = content
        self.embeds = list(embeds or [])
        self.mentions = list(mentions or [])
        self.created_at = created_at or next_timestamp()


BOT_USER = SimpleNamespace(id=999, name="DevMob", bot=True, mention="<@999>")


class FakeChannel:
    """
    Text channel or thread.

    ``responder(channel, message)`` runs synchronously after every bot
    send, so tests can script member replies to each question.
    """

    def __init__(self, id: int, name: str = "channel", responder=None):
        self.id = id
        self.name = name
        self.mention = f"<#{id}>"
        self.messages = []
        self.responder = responder
        self.thread_responder = None
        self.threads = []
        self.added_users = []
        self.history_failures = 0
        self.history_calls = 0
        self.create_thread = AsyncMock(side_effect=self._create_thread)

    async def send(self, content=None, *, embed=None, **kwargs):
        message = FakeMessage(BOT_USER, content or "", embeds=[embed] if embed else [])
        self.messages.append(message)
        if self.responder is not None:
            self.responder(self, message)
        return message

    def post(self, author, content: str, created_at=None) -> FakeMessage:
        """A message from someone other than the bot."""
        message = FakeMessage(author, content, created_at=created_at)
        self.messages.append(message)
        return message

    def history(self, limit=100):
        return self._history(limit)

    async def _history(self, limit):
        self.history_calls += 1
        if self.history_failures > 0:
            self.history_failures -= 1
            raise http_error(500)
        for message in list(reversed(self.messages))[:limit]:
            yield message

    async def _create_thread(self, name, type=None, invitable=True, auto_archive_duration=None):
        thread = FakeChannel(7000 + len(self.threads), name=name, responder=self.thread_responder)
        self.threads.append(thread)
        return thread

    async def add_user(self, member):
        self.added_users.append(member)

    def question_footers(self):
        footers = []
        for message in self.messages:
            for embed in message.embeds:
                text = embed.footer.text
                if text and text.startswith("Question"):
                    footers.append(text)
        return footers


class FakeGuild:
    def __init__(self, id: int = 1, name: str = "the DevMob", roles=None):
        self.id = id
        self.name = name
        self.member_count = 0
        self._roles = {r.id: r for r in (roles or [])}
        self._members = {}
        self.channels = []
        self.invites = AsyncMock(return_value=[])

    @property
    def roles(self):
        return list(self._roles.values())

    def get_role(self, role_id):
        return self._roles.get(role_id)

    def get_member(self, member_id):
        return self._members.get(member_id)

    def add_member(self, member):
        member.guild = self
        self._members[member.id] = member
        return member


def make_invite(code: str, uses: int, inviter=None, guild=None):
    return SimpleNamespace(code=code, uses=uses, inviter=inviter, guild=guild)


def answering_responder(member, answers=None, stop_after=None):
    """Reply as ``member`` to each question embed with the next answer."""
    replies = list(answers or [f"answer-{member.name}-{i}" for i in range(1, 5)])
    asked = {"count": 0}

    def responder(channel, message):
        if not message.embeds:
            return
        text = message.embeds[0].footer.text
        if not text or not text.startswith("Question"):
            return
        index = asked["count"]
        asked["count"] += 1
        if stop_after is not None and index >= stop_after:
            return
        channel.post(member, replies[index])

    return responder


# =============================================================================
# Fixtures
# =============================================================================

ASSOCIATE_ID = 501
OUTSIDER_ID = 502
STORY_CHANNEL_ID = 601
JOIN_CHANNEL_ID = 602
LOG_CHANNEL_ID = 603


@pytest.fixture
def associate_role():
    return FakeRole(ASSOCIATE_ID, "Associate", position=5)


@pytest.fixture
def outsider_role():
    return FakeRole(OUTSIDER_ID, "Outsider", position=2)


@pytest.fixture
def guild(associate_role, outsider_role):
    return FakeGuild(roles=[associate_role, outsider_role, FakeRole(1, "@everyone", 0, default=True)])


@pytest.fixture
def story_channel():
    return FakeChannel(STORY_CHANNEL_ID, "stories")


@pytest.fixture
def entry_channel():
    return FakeChannel(JOIN_CHANNEL_ID, "join-the-family")


@pytest.fixture
def mock_bot(story_channel, entry_channel):
    """Bot stand-in that resolves the configured channels."""
    bot = MagicMock()
    channels = {STORY_CHANNEL_ID: story_channel, JOIN_CHANNEL_ID: entry_channel}
    bot.get_channel.side_effect = lambda channel_id: channels.get(channel_id)
    bot.channels = channels
    return bot


@pytest.fixture
def config(tmp_path):
    return Config(
        discord_token="test-token",
        story_channel_id=STORY_CHANNEL_ID,
        join_channel_id=JOIN_CHANNEL_ID,
        log_channel_id=LOG_CHANNEL_ID,
        associate_role_id=ASSOCIATE_ID,
        outsider_role_id=OUTSIDER_ID,
        owner_id=42,
        interview_timeout=2,
        answer_poll_interval=0.01,
        data_dir=tmp_path,
    )


@pytest.fixture
def completion_response():
    """Build a chat completion response carrying ``content``."""
    def _build(content):
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
            usage=SimpleNamespace(total_tokens=321),
        )
    return _build


@pytest.fixture
def event_loop_yield():
    async def _yield(times: int = 5):
        for _ in range(times):
            await asyncio.sleep(0)
    return _yield

"""
DevMob Onboarding Bot - Utility Tests
=====================================

Tests for retry/backoff, background tasks, error handling, the audit
log and the health server.
"""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from devmob.core.errors import PersistenceError, ProviderError
from devmob.core.health import HealthCheckServer
from devmob.services.audit import AuditLogService
from devmob.utils.async_utils import create_safe_task
from devmob.utils.discord_errors import describe_status, log_http_error
from devmob.utils.error_handler import ErrorHandler
from devmob.utils.interaction import safe_respond
from devmob.utils.retry import compute_delay, retry_async

from conftest import LOG_CHANNEL_ID, FakeChannel, FakeGuild, FakeRole, http_error


# =============================================================================
# Retry
# =============================================================================

class TestComputeDelay:
    """Tests for compute_delay()."""

    def test_login_schedule(self):
        assert [compute_delay(attempt, 30, 120) for attempt in range(4)] == [30, 60, 120, 120]

    def test_capped(self):
        assert [compute_delay(attempt, 1, 10) for attempt in range(5)] == [1, 2, 4, 8, 10]


class TestRetryAsync:
    """Tests for retry_async()."""

    @pytest.mark.asyncio
    async def test_succeeds_after_failures(self, monkeypatch):
        sleep = AsyncMock()
        monkeypatch.setattr("devmob.utils.retry.asyncio.sleep", sleep)
        func = AsyncMock(side_effect=[OSError("down"), OSError("down"), "ok"])

        result = await retry_async(func, "token", max_retries=4, base_delay=30, max_delay=120,
                                   exceptions=(OSError,))

        assert result == "ok"
        assert [call.args[0] for call in sleep.await_args_list] == [30, 60]
        func.assert_awaited_with("token")

    @pytest.mark.asyncio
    async def test_raises_after_last_attempt(self, monkeypatch):
        monkeypatch.setattr("devmob.utils.retry.asyncio.sleep", AsyncMock())
        func = AsyncMock(side_effect=OSError("down"))

        with pytest.raises(OSError):
            await retry_async(func, max_retries=4, exceptions=(OSError,))
        assert func.await_count == 5

    @pytest.mark.asyncio
    async def test_other_exceptions_not_retried(self):
        func = AsyncMock(side_effect=ValueError("bad token format"))
        with pytest.raises(ValueError):
            await retry_async(func, exceptions=(OSError,))
        assert func.await_count == 1


# =============================================================================
# Background Tasks
# =============================================================================

class TestCreateSafeTask:
    """Tests for create_safe_task()."""

    @pytest.mark.asyncio
    async def test_exception_is_logged_not_raised(self):
        async def boom():
            raise RuntimeError("lost")

        task = create_safe_task(boom(), "Boom")
        await task
        assert task.exception() is None

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        task = create_safe_task(asyncio.sleep(10), "Sleeper")
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


# =============================================================================
# Error Handler
# =============================================================================

class TestErrorHandler:
    """Tests for ErrorHandler categorization."""

    @pytest.mark.parametrize("error,category", [
        (http_error(403, discord.Forbidden), "discord"),
        (ProviderError("quota", status_code=429), "provider"),
        (PersistenceError("disk full"), "storage"),
        (ConnectionError("reset"), "network"),
        (KeyError("x"), "general"),
    ])
    def test_categorize(self, error, category):
        assert ErrorHandler.categorize_error(error) == category

    def test_recovery_suggestion(self):
        assert "permissions" in ErrorHandler.get_recovery_suggestion(http_error(403, discord.Forbidden))

    def test_handle_never_raises(self):
        ErrorHandler.handle(ValueError("x"), "tests", member=SimpleNamespace(id=1, name="a"))


# =============================================================================
# Audit Log
# =============================================================================

class TestAuditLogService:
    """Tests for AuditLogService.report()."""

    @pytest.mark.asyncio
    async def test_disabled_without_channel(self):
        audit = AuditLogService(MagicMock(), None)
        assert await audit.report("Nothing") is False

    @pytest.mark.asyncio
    async def test_sends_embed(self):
        channel = FakeChannel(LOG_CHANNEL_ID)
        bot = MagicMock()
        bot.get_channel.return_value = channel
        audit = AuditLogService(bot, LOG_CHANNEL_ID)

        assert await audit.report("Interview Failed", RuntimeError("lost"), [("Member", "tony (10)")]) is True
        embed = channel.messages[-1].embeds[0]
        assert embed.title == "❌ Interview Failed"
        assert [field.name for field in embed.fields] == ["Error", "Member"]

    @pytest.mark.asyncio
    async def test_send_failure_returns_false(self):
        channel = MagicMock()
        channel.send = AsyncMock(side_effect=http_error(403, discord.Forbidden))
        bot = MagicMock()
        bot.get_channel.return_value = channel
        assert await AuditLogService(bot, LOG_CHANNEL_ID).report("x") is False


# =============================================================================
# Interactions
# =============================================================================

class TestSafeRespond:
    """Tests for safe_respond()."""

    @pytest.mark.asyncio
    async def test_uses_followup_after_defer(self):
        interaction = MagicMock()
        interaction.response.is_done.return_value = True
        interaction.followup.send = AsyncMock()

        assert await safe_respond(interaction, "done") is True
        interaction.followup.send.assert_awaited_once_with(ephemeral=True, content="done")

    @pytest.mark.asyncio
    async def test_http_error_returns_false(self):
        interaction = MagicMock()
        interaction.response.is_done.return_value = False
        interaction.response.send_message = AsyncMock(side_effect=http_error(404, discord.NotFound))
        assert await safe_respond(interaction, "late") is False


# =============================================================================
# Health Server
# =============================================================================

@pytest.fixture
def health_bot():
    bot = MagicMock()
    bot.is_ready.return_value = True
    bot.latency = 0.042
    bot.guilds = [FakeGuild(1, "the DevMob", roles=[FakeRole(5, "Associate", position=3)])]
    bot.onboarding.active_count = 2
    bot.config.openai_api_key = None
    bot.get_guild.side_effect = lambda gid: bot.guilds[0] if gid == 1 else None
    return bot


class TestHealthCheckServer:
    """Tests for the HTTP handlers."""

    @pytest.mark.asyncio
    async def test_health(self, health_bot):
        response = await HealthCheckServer(health_bot).health_handler(MagicMock())
        body = json.loads(response.text)
        assert body["status"] == "healthy"
        assert body["active_interviews"] == 2

    @pytest.mark.asyncio
    async def test_status(self, health_bot):
        response = await HealthCheckServer(health_bot).status_handler(MagicMock())
        body = json.loads(response.text)
        assert body["latency_ms"] == 42
        assert body["config"]["openai_api_key"] is False

    @pytest.mark.asyncio
    async def test_roles(self, health_bot):
        server = HealthCheckServer(health_bot)
        found = await server.roles_handler(MagicMock(match_info={"guild_id": "1"}))
        assert json.loads(found.text) == [{"id": "5", "name": "Associate", "position": 3}]

        missing = await server.roles_handler(MagicMock(match_info={"guild_id": "2"}))
        assert missing.status == 404


# =============================================================================
# HTTP Error Logging
# =============================================================================

class TestDiscordErrors:
    """Tests for the HTTP status table."""

    def test_known_and_unknown_statuses(self):
        assert describe_status(403) == "Forbidden"
        assert describe_status(429) == "Rate Limited"
        assert describe_status(418) == "Failed"
        assert describe_status(None) == "Failed"

    def test_log_never_raises(self):
        log_http_error(http_error(403, discord.Forbidden), "Add Role", [("Member", "tony (10)")])
        log_http_error(http_error(500), "Announce Story")

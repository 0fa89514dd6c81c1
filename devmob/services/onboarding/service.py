"""
DevMob Onboarding Bot - Onboarding Service
==========================================

Ties invite attribution, interviews, story generation and roles together.

DESIGN:
    Two entry points:
    - handle_member_join(): join event. Attribute the invite, record it,
      then either welcome a returning member back or mark a new one as
      Outsider.
    - handle_join_command(): /join in the entry channel. Starts a private
      interview in a background task and returns immediately.

    At most one live interview per member. The registry of live sessions
    is guarded by an asyncio.Lock and every session is removed in a
    finally block, whatever state it ends in.

    After a completed interview the steps run independently: generate,
    save, promote, announce. A failure in one is logged and the next one
    still runs.

Server: the DevMob
"""

import asyncio
from collections import OrderedDict
from enum import Enum
from typing import Dict, List, Optional

import discord

from devmob.core.config import Config
from devmob.core.constants import PENDING_INVITERS_LIMIT, THREAD_AUTO_ARCHIVE_MINUTES, THREAD_NAME_PREFIX
from devmob.core.errors import SessionAlreadyActive
from devmob.core.logger import logger
from devmob.core.storage import InviteHistoryRecord, InviteHistoryStore, StoryStore
from devmob.services.ai import StoryGenerator
from devmob.services.ai.prompts import PLACEHOLDER_UNEXPECTED
from devmob.services.audit import AuditLogService
from devmob.services.invites import InviteAttributor, InviteUse, InviterInfo
from devmob.utils.async_utils import create_safe_task
from devmob.utils.discord_errors import log_http_error
from devmob.utils.error_handler import ErrorHandler

from .announcer import Announcer
from .classifier import MembershipClassifier
from .interview import InterviewOrchestrator
from .roles import RoleManager
from .session import InterviewSession, SessionState


# =============================================================================
# Join Outcomes
# =============================================================================

class JoinOutcome(Enum):
    DISABLED = "disabled"
    WRONG_CHANNEL = "wrong_channel"
    ALREADY_MEMBER = "already_member"
    RETURNING = "returning"
    SESSION_ACTIVE = "session_active"
    STARTED = "started"


# =============================================================================
# Onboarding Service
# =============================================================================

class OnboardingService:
    """
    Member onboarding workflow.

    Attributes:
        config: Bot configuration.
        active_count: Number of live interviews.
    """

    def __init__(
        self,
        bot,
        config: Config,
        stories: StoryStore,
        invite_history: InviteHistoryStore,
        attributor: InviteAttributor,
        generator: StoryGenerator,
        classifier: MembershipClassifier,
        roles: RoleManager,
        announcer: Announcer,
        orchestrator: InterviewOrchestrator,
        audit: Optional[AuditLogService] = None,
    ) -> None:
        self.bot = bot
        self.config = config
        self.stories = stories
        self.invite_history = invite_history
        self.attributor = attributor
        self.generator = generator
        self.classifier = classifier
        self.roles = roles
        self.announcer = announcer
        self.orchestrator = orchestrator
        self.audit = audit

        self._sessions: Dict[int, InterviewSession] = {}
        self._tasks: Dict[int, asyncio.Task] = {}
        # Inviters seen at join, waiting for /join (LRU, invite history backs evictions)
        self._pending_inviters: OrderedDict[int, InviterInfo] = OrderedDict()
        self._lock = asyncio.Lock()

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    @property
    def pending_inviter_count(self) -> int:
        return len(self._pending_inviters)

    def get_session(self, member_id: int) -> Optional[InterviewSession]:
        return self._sessions.get(member_id)

    async def _report(self, title: str, error: BaseException, context: List) -> None:
        if self.audit is not None:
            await self.audit.report(title, error, context)

    # =========================================================================
    # Join Event
    # =========================================================================

    async def handle_member_join(self, member: discord.Member) -> None:
        """Attribute, record, then classify a member who just joined. Never raises."""
        if member.bot:
            return
        if not self.config.onboarding_enabled:
            logger.debug(f"Onboarding disabled, ignoring join of {member.id}")
            return

        try:
            inviter = await self.attributor.attribute_join(member)

            joined_at = member.joined_at or discord.utils.utcnow()
            await self.invite_history.record(member.id, InviteHistoryRecord(
                inviter_name=inviter.name,
                inviter_id=inviter.id,
                invite_code=inviter.invite_code,
                join_date=joined_at.isoformat(),
            ))

            if await self.classifier.is_returning(member):
                await self.roles.promote_to_associate(member, reason="Returning member")
                await self.announcer.announce_return(member)
                await self.announcer.welcome_back(self._entry_channel(), member)
                outcome = "Returning"
            else:
                self._remember_inviter(member.id, inviter)
                await self.roles.assign_outsider(member)
                outcome = "New"

            logger.tree("Member Joined", [
                ("Member", f"{member.name} ({member.id})"),
                ("Inviter", inviter.name or "Unknown"),
                ("Status", outcome),
            ], emoji="📥")

        except Exception as e:
            ErrorHandler.handle(e, "OnboardingService.handle_member_join", member=member)
            await self._report("Member Join Failed", e, [("Member", f"{member} ({member.id})")])

    def _remember_inviter(self, member_id: int, inviter: InviterInfo) -> None:
        self._pending_inviters[member_id] = inviter
        self._pending_inviters.move_to_end(member_id)
        while len(self._pending_inviters) > PENDING_INVITERS_LIMIT:
            self._pending_inviters.popitem(last=False)

    def forget_member(self, member_id: int) -> None:
        """Drop per-member state for someone who left the server."""
        if member_id not in self._sessions:
            self._pending_inviters.pop(member_id, None)
        self.roles.forget(member_id)

    def _entry_channel(self):
        if not self.config.join_channel_id:
            return None
        return self.bot.get_channel(self.config.join_channel_id)

    # =========================================================================
    # /join
    # =========================================================================

    async def handle_join_command(self, member: discord.Member, channel) -> JoinOutcome:
        """
        Handle /join from ``member`` in ``channel``.

        Returns immediately after a new interview is scheduled; the
        interview itself runs in a background task.
        """
        if not self.config.onboarding_enabled:
            return JoinOutcome.DISABLED
        if channel is None or channel.id != self.config.join_channel_id:
            return JoinOutcome.WRONG_CHANNEL
        if self.roles.has_associate(member):
            return JoinOutcome.ALREADY_MEMBER
        if member.id in self._sessions:
            return JoinOutcome.SESSION_ACTIVE

        if await self.classifier.is_returning(member):
            await self.announcer.welcome_back(channel, member)
            await self.roles.promote_to_associate(member, reason="Returning member")
            logger.tree("Returning Member Welcomed", [
                ("Member", f"{member.name} ({member.id})"),
            ], emoji="🎩")
            return JoinOutcome.RETURNING

        try:
            await self.start_interview(member, channel)
        except SessionAlreadyActive:
            return JoinOutcome.SESSION_ACTIVE
        return JoinOutcome.STARTED

    async def start_interview(self, member: discord.Member, entry_channel) -> InterviewSession:
        """
        Register a session and start its interview task.

        Raises:
            SessionAlreadyActive: The member already has a live interview.
        """
        async with self._lock:
            if member.id in self._sessions:
                raise SessionAlreadyActive(member.id)
            session = InterviewSession(member=member)
            self._sessions[member.id] = session
            self._tasks[member.id] = create_safe_task(
                self._run_interview(session, entry_channel),
                "Interview",
                [("Member", f"{member.name} ({member.id})")],
            )
        return session

    # =========================================================================
    # Interview Task
    # =========================================================================

    async def _run_interview(self, session: InterviewSession, entry_channel) -> None:
        member = session.member
        try:
            thread = await self._acquire_thread(member, entry_channel)
            if thread is None:
                session.fail()
                return
            session.channel = thread

            state = await self.orchestrator.run(session)
            if state is SessionState.COMPLETED:
                await self._finish(session)

        except asyncio.CancelledError:
            session.fail()
            raise
        except Exception as e:
            session.fail()
            ErrorHandler.handle(e, "OnboardingService._run_interview", member=member)
            await self._report("Interview Failed", e, [
                ("Member", f"{member} ({member.id})"),
                ("Question", str(session.question_index + 1)),
            ])
            await self._notify_failure(session)
        finally:
            async with self._lock:
                self._sessions.pop(member.id, None)
                self._tasks.pop(member.id, None)
                self._pending_inviters.pop(member.id, None)

    async def _acquire_thread(self, member: discord.Member, entry_channel):
        """Reuse the member's onboarding thread or create a private one."""
        name = f"{THREAD_NAME_PREFIX}{member.name}"[:100]

        thread = next((t for t in getattr(entry_channel, "threads", []) if t.name == name), None)
        try:
            if thread is None:
                thread = await entry_channel.create_thread(
                    name=name,
                    type=discord.ChannelType.private_thread,
                    invitable=False,
                    auto_archive_duration=THREAD_AUTO_ARCHIVE_MINUTES,
                )
                created = True
            else:
                created = False
            await thread.add_user(member)
        except discord.HTTPException as e:
            log_http_error(e, "Create Interview Thread", [
                ("Member", f"{member.name} ({member.id})"),
                ("Thread", name),
            ])
            return None

        logger.tree("Interview Thread Ready", [
            ("Member", f"{member.name} ({member.id})"),
            ("Thread", name),
            ("Reused", "No" if created else "Yes"),
        ], emoji="🧵")
        return thread

    async def _step(self, name: str, member: discord.Member, coro, default):
        """Await one post-interview step; log and return ``default`` if it raises."""
        try:
            return await coro
        except Exception as e:
            ErrorHandler.handle(e, f"OnboardingService._finish.{name}", member=member)
            await self._report(f"Onboarding Step Failed: {name}", e, [("Member", f"{member} ({member.id})")])
            return default

    async def _finish(self, session: InterviewSession) -> None:
        member = session.member
        inviter = await self._step("inviter", member, self._inviter_for(member), InviterInfo.unknown())

        story = await self._step("generate", member, self.generator.generate(
            dict(session.answers),
            inviter_name=inviter.name,
            inviter_role=inviter.top_role_name,
            inviter_story=inviter.previous_story,
        ), PLACEHOLDER_UNEXPECTED)
        saved = await self._step("save", member, self.stories.save(member.id, story), False)
        # session.member is the /join snapshot; prefer the cached member
        current = member.guild.get_member(member.id) or member
        promoted = await self._step("promote", member, self.roles.promote_to_associate(current), False)
        announced = await self._step(
            "announce", member, self.announcer.announce_story(member, story, inviter.known), None,
        )

        logger.tree("Onboarding Finished", [
            ("Member", f"{member.name} ({member.id})"),
            ("Inviter", inviter.name or "Unknown"),
            ("Story Saved", "Yes" if saved else "No"),
            ("Promoted", "Yes" if promoted else "No"),
            ("Announced", "Yes" if announced else "No"),
        ], emoji="🎉")

    async def _inviter_for(self, member: discord.Member) -> InviterInfo:
        """Inviter from the join event, else from the invite history file."""
        pending = self._pending_inviters.pop(member.id, None)
        if pending is not None and pending.known:
            return pending

        record = await self.invite_history.get(member.id)
        if record is None or not record.known:
            return InviterInfo.unknown()

        return await self.attributor.resolve_inviter(
            member.guild,
            InviteUse(code=record.invite_code, uses=0, inviter_id=record.inviter_id, inviter_name=record.inviter_name),
        )

    async def _notify_failure(self, session: InterviewSession) -> None:
        if session.channel is None:
            return
        try:
            await session.channel.send("Something went wrong with your interview. Run `/join` to try again.")
        except discord.HTTPException as e:
            log_http_error(e, "Send Failure Notice", [("Member", str(session.member_id))])

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def wait_until_idle(self) -> None:
        """Wait for every running interview task to finish."""
        while True:
            pending = [task for task in self._tasks.values() if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel all live interviews."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} live interview(s)")
        self._tasks.clear()
        self._sessions.clear()


__all__ = ["JoinOutcome", "OnboardingService"]

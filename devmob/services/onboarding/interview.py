"""
DevMob Onboarding Bot - Interview Orchestrator
==============================================

Asks the questions in a member's private thread and collects the answers.

DESIGN:
    Answers are collected by polling the thread's recent history rather
    than through wait_for(), so every interview is a plain coroutine with
    its own deadline and nothing is shared between sessions except the
    client. A message counts as the answer when:
    - its author is the interviewed member and not a bot
    - it was created after the question was posted
    - it is inside the freshness window, when one is configured
    - it has text

    The most recent qualifying message wins. A failed history read is
    logged and the poll continues until the deadline.

Server: the DevMob
"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

import discord

from devmob.core.config import EmbedColors
from devmob.core.constants import ANSWER_HISTORY_LIMIT
from devmob.core.logger import logger
from devmob.services.ai.prompts import Question
from devmob.utils.discord_errors import log_http_error

from .session import InterviewSession, SessionState


# =============================================================================
# Interview Orchestrator
# =============================================================================

class InterviewOrchestrator:
    """
    Runs one interview session to a terminal state.

    Attributes:
        questions: Questions in the order they are asked.
        timeout: Seconds to wait for each answer.
        poll_interval: Seconds between history reads.
        history_limit: Messages read per poll.
        freshness: Optional maximum age of an answer, in seconds.
        story_channel_id: Linked from the completion message.
    """

    def __init__(
        self,
        questions: Sequence[Question],
        timeout: float,
        poll_interval: float,
        history_limit: int = ANSWER_HISTORY_LIMIT,
        freshness: Optional[float] = None,
        story_channel_id: Optional[int] = None,
        clock: Callable[[], datetime] = discord.utils.utcnow,
    ) -> None:
        self.questions: List[Question] = list(questions)
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.history_limit = history_limit
        self.freshness = freshness
        self.story_channel_id = story_channel_id
        self._now = clock

    # =========================================================================
    # Run
    # =========================================================================

    async def run(self, session: InterviewSession) -> SessionState:
        """
        Ask every question in order and wait for each answer.

        Returns:
            COMPLETED or TIMED_OUT.

        Raises:
            Anything unexpected, after moving the session to ERRORED.
        """
        member = session.member
        total = len(self.questions)

        logger.tree("Interview Started", [
            ("Member", f"{member.name} ({member.id})"),
            ("Thread", getattr(session.channel, "name", "?")),
            ("Questions", str(total)),
        ], emoji="🎭")

        try:
            await session.channel.send(embed=self._welcome_embed(member))

            for index, question in enumerate(self.questions):
                await self._ask(session, index, question)
                answer = await self._wait_for_answer(session)

                if answer is None:
                    session.time_out()
                    logger.tree("Interview Timed Out", [
                        ("Member", f"{member.name} ({member.id})"),
                        ("Question", f"{index + 1}/{total}"),
                        ("Answered", str(len(session.answers))),
                    ], emoji="⏰")
                    await self._send_timeout_notice(session)
                    return session.state

                session.record_answer(question.key, answer)
                logger.debug("Answer Collected", [
                    ("Member", str(member.id)),
                    ("Question", question.key),
                    ("Length", str(len(answer))),
                ])

            session.complete()
            logger.tree("Interview Completed", [
                ("Member", f"{member.name} ({member.id})"),
                ("Answers", str(len(session.answers))),
            ], emoji="🏁")
            await self._send_completion(session)
            return session.state

        except asyncio.CancelledError:
            session.fail()
            raise
        except Exception as e:
            session.fail()
            logger.error("Interview Failed", [
                ("Member", f"{member.name} ({member.id})"),
                ("Question", str(session.question_index + 1)),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            raise

    async def _ask(self, session: InterviewSession, index: int, question: Question) -> None:
        message = await session.channel.send(embed=self._question_embed(index, question))
        sent_at = getattr(message, "created_at", None) or self._now()
        session.ask(index, sent_at, sent_at + timedelta(seconds=self.timeout))

    # =========================================================================
    # Answer Collection
    # =========================================================================

    async def _wait_for_answer(self, session: InterviewSession) -> Optional[str]:
        """Poll until an answer arrives or the timeout passes. None on timeout."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout

        while True:
            answer = await self._poll_once(session)
            if answer is not None:
                return answer

            remaining = deadline - loop.time()
            if remaining <= 0:
                return None
            await asyncio.sleep(min(self.poll_interval, remaining))

    async def _poll_once(self, session: InterviewSession) -> Optional[str]:
        try:
            messages = [m async for m in session.channel.history(limit=self.history_limit)]
        except discord.HTTPException as e:
            log_http_error(e, "Read Interview Thread", [
                ("Member", str(session.member_id)),
                ("Question", str(session.question_index + 1)),
            ])
            return None

        candidates = [m for m in messages if self.is_answer(m, session)]
        if not candidates:
            return None
        return max(candidates, key=lambda m: m.created_at).content

    def is_answer(self, message: discord.Message, session: InterviewSession) -> bool:
        """Whether ``message`` answers the question the session is waiting on."""
        author = message.author
        if author.id != session.member_id or author.bot:
            return False
        if session.question_sent_at is None or message.created_at <= session.question_sent_at:
            return False
        if self.freshness is not None:
            if (self._now() - message.created_at).total_seconds() > self.freshness:
                return False
        return True

    # =========================================================================
    # Messages
    # =========================================================================

    def _welcome_embed(self, member: discord.Member) -> discord.Embed:
        embed = discord.Embed(
            title="🎩 Welcome to the DevMob",
            description=(
                f"{member.mention}, the family wants to know who you are.\n"
                f"Answer {len(self.questions)} quick questions and the storyteller "
                f"will write your legend.\n\n"
                f"You have {int(self.timeout)} seconds for each answer."
            ),
            color=EmbedColors.GOLD,
        )
        return embed

    def _question_embed(self, index: int, question: Question) -> discord.Embed:
        embed = discord.Embed(description=f"**{question.text}**", color=EmbedColors.GOLD)
        embed.set_footer(text=f"Question {index + 1}/{len(self.questions)}")
        return embed

    async def _send_timeout_notice(self, session: InterviewSession) -> None:
        embed = discord.Embed(
            title="⏰ Time's Up",
            description="The family waited, but you went quiet. Run `/join` again when you're ready.",
            color=EmbedColors.ORANGE,
        )
        try:
            await session.channel.send(embed=embed)
        except discord.HTTPException as e:
            log_http_error(e, "Send Timeout Notice", [("Member", str(session.member_id))])

    async def _send_completion(self, session: InterviewSession) -> None:
        where = f"<#{self.story_channel_id}>" if self.story_channel_id else "the story channel"
        embed = discord.Embed(
            title="✅ Interview Complete",
            description=f"Your story is being written. Look for it in {where}.",
            color=EmbedColors.GREEN,
        )
        try:
            await session.channel.send(embed=embed)
        except discord.HTTPException as e:
            log_http_error(e, "Send Completion Notice", [("Member", str(session.member_id))])


__all__ = ["InterviewOrchestrator"]

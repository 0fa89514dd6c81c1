"""
DevMob Onboarding Bot - Interview Tests
=======================================

Tests for the session state machine and the polling orchestrator.
"""

import asyncio
from datetime import timedelta

import discord
import pytest

from devmob.core.errors import InvalidSessionTransition
from devmob.services.ai.prompts import INTERVIEW_QUESTIONS
from devmob.services.onboarding import InterviewOrchestrator, InterviewSession, SessionState

from conftest import BOT_USER, FakeChannel, FakeMember, answering_responder, next_timestamp


def make_orchestrator(timeout=2.0, **kwargs):
    return InterviewOrchestrator(INTERVIEW_QUESTIONS, timeout=timeout, poll_interval=0.01, story_channel_id=601, **kwargs)


# =============================================================================
# Session State
# =============================================================================

class TestInterviewSession:
    """Tests for InterviewSession transitions."""

    def test_happy_path(self):
        session = InterviewSession(member=FakeMember(1, "a"))
        now = discord.utils.utcnow()
        for index in range(4):
            session.ask(index, now, now + timedelta(seconds=30))
            session.record_answer(f"q{index}", "yes")
        session.complete()
        assert session.state is SessionState.COMPLETED
        assert session.is_terminal

    def test_cannot_record_before_asking(self):
        session = InterviewSession(member=FakeMember(1, "a"))
        with pytest.raises(InvalidSessionTransition):
            session.record_answer("q0", "early")

    def test_terminal_states_are_final(self):
        session = InterviewSession(member=FakeMember(1, "a"))
        now = discord.utils.utcnow()
        session.ask(0, now, now)
        session.time_out()
        with pytest.raises(InvalidSessionTransition):
            session.complete()

    def test_fail_after_terminal_is_noop(self):
        session = InterviewSession(member=FakeMember(1, "a"))
        session.complete()
        session.fail()
        assert session.state is SessionState.COMPLETED

    def test_cannot_time_out_before_first_question(self):
        session = InterviewSession(member=FakeMember(1, "a"))
        with pytest.raises(InvalidSessionTransition):
            session.time_out()


# =============================================================================
# Orchestrator
# =============================================================================

class TestInterviewRun:
    """Tests for InterviewOrchestrator.run()."""

    @pytest.mark.asyncio
    async def test_collects_all_answers_in_order(self):
        member = FakeMember(10, "tony")
        thread = FakeChannel(1, responder=answering_responder(member))
        session = InterviewSession(member=member, channel=thread)

        state = await make_orchestrator().run(session)

        assert state is SessionState.COMPLETED
        assert list(session.answers) == [q.key for q in INTERVIEW_QUESTIONS]
        assert session.answers["superpower"] == "answer-tony-3"
        assert thread.question_footers() == ["Question 1/4", "Question 2/4", "Question 3/4", "Question 4/4"]
        assert "<#601>" in thread.messages[-1].embeds[0].description

    @pytest.mark.asyncio
    async def test_timeout_stops_further_questions(self):
        member = FakeMember(10, "tony")
        thread = FakeChannel(1, responder=answering_responder(member, stop_after=1))
        session = InterviewSession(member=member, channel=thread)

        state = await make_orchestrator(timeout=0.05).run(session)

        assert state is SessionState.TIMED_OUT
        assert thread.question_footers() == ["Question 1/4", "Question 2/4"]
        assert session.answers == {"expectation": "answer-tony-1"}
        assert thread.messages[-1].embeds[0].title == "⏰ Time's Up"

    @pytest.mark.asyncio
    async def test_concurrent_sessions_never_cross_deliver(self):
        """Each thread also gets a message from the other member; it is never taken."""
        alice = FakeMember(21, "alice")
        bob = FakeMember(22, "bob")

        def with_intruder(owner, intruder):
            answer = answering_responder(owner)

            def responder(channel, message):
                if message.embeds and (message.embeds[0].footer.text or "").startswith("Question"):
                    channel.post(intruder, f"intruder-{intruder.name}")
                answer(channel, message)
            return responder

        thread_a = FakeChannel(1, responder=with_intruder(alice, bob))
        thread_b = FakeChannel(2, responder=with_intruder(bob, alice))
        session_a = InterviewSession(member=alice, channel=thread_a)
        session_b = InterviewSession(member=bob, channel=thread_b)

        orchestrator = make_orchestrator()
        states = await asyncio.gather(orchestrator.run(session_a), orchestrator.run(session_b))

        assert states == [SessionState.COMPLETED, SessionState.COMPLETED]
        assert all(a.startswith("answer-alice") for a in session_a.answers.values())
        assert all(a.startswith("answer-bob") for a in session_b.answers.values())

    @pytest.mark.asyncio
    async def test_history_failure_is_retried(self):
        member = FakeMember(10, "tony")
        thread = FakeChannel(1, responder=answering_responder(member))
        thread.history_failures = 2
        session = InterviewSession(member=member, channel=thread)

        state = await make_orchestrator().run(session)

        assert state is SessionState.COMPLETED
        assert len(session.answers) == 4

    @pytest.mark.asyncio
    async def test_send_failure_marks_errored(self):
        member = FakeMember(10, "tony")
        thread = FakeChannel(1)

        async def broken_send(*args, **kwargs):
            raise RuntimeError("socket closed")

        thread.send = broken_send
        session = InterviewSession(member=member, channel=thread)

        with pytest.raises(RuntimeError):
            await make_orchestrator().run(session)
        assert session.state is SessionState.ERRORED


class TestIsAnswer:
    """Tests for the answer filter."""

    def _awaiting(self, member):
        session = InterviewSession(member=member, channel=FakeChannel(1))
        sent_at = next_timestamp()
        session.ask(0, sent_at, sent_at + timedelta(seconds=30))
        return session

    def test_accepts_member_message_after_question(self):
        member = FakeMember(10, "tony")
        session = self._awaiting(member)
        message = session.channel.post(member, "the docks")
        assert make_orchestrator().is_answer(message, session)

    def test_rejects_message_before_question(self):
        member = FakeMember(10, "tony")
        early = FakeChannel(1).post(member, "too early")
        session = self._awaiting(member)
        assert not make_orchestrator().is_answer(early, session)

    def test_rejects_other_authors_and_bots(self):
        member = FakeMember(10, "tony")
        session = self._awaiting(member)
        orchestrator = make_orchestrator()
        assert not orchestrator.is_answer(session.channel.post(FakeMember(11, "sal"), "me!"), session)
        assert not orchestrator.is_answer(session.channel.post(BOT_USER, "bot text"), session)

    @pytest.mark.asyncio
    async def test_answer_taken_verbatim(self):
        member = FakeMember(10, "tony")
        session = self._awaiting(member)
        session.channel.post(member, "  the docks, at night \n")
        assert await make_orchestrator()._poll_once(session) == "  the docks, at night \n"

    @pytest.mark.asyncio
    async def test_blank_message_is_an_answer(self):
        member = FakeMember(10, "tony")
        session = self._awaiting(member)
        message = session.channel.post(member, "")
        assert make_orchestrator().is_answer(message, session)
        assert await make_orchestrator()._poll_once(session) == ""

    def test_freshness_window(self):
        member = FakeMember(10, "tony")
        session = self._awaiting(member)
        message = session.channel.post(member, "stale")

        late_clock = lambda: message.created_at + timedelta(seconds=60)  # noqa: E731
        assert not make_orchestrator(freshness=30, clock=late_clock).is_answer(message, session)

        early_clock = lambda: message.created_at + timedelta(seconds=5)  # noqa: E731
        assert make_orchestrator(freshness=30, clock=early_clock).is_answer(message, session)

    @pytest.mark.asyncio
    async def test_latest_answer_wins(self):
        member = FakeMember(10, "tony")
        session = self._awaiting(member)
        session.channel.post(member, "first")
        session.channel.post(member, "second")
        assert await make_orchestrator()._poll_once(session) == "second"

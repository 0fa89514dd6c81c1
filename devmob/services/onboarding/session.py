"""
DevMob Onboarding Bot - Interview Session
=========================================

State for one member's interview.

    CREATED -> AWAITING_ANSWER -> ... -> COMPLETED
                                     \-> TIMED_OUT
                                     \-> ERRORED

AWAITING_ANSWER repeats once per question. COMPLETED, TIMED_OUT and
ERRORED are terminal; ERRORED is reachable from any non-terminal state.

Server: the DevMob
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

import discord

from devmob.core.errors import InvalidSessionTransition


# =============================================================================
# States
# =============================================================================

class SessionState(Enum):
    CREATED = "created"
    AWAITING_ANSWER = "awaiting_answer"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    ERRORED = "errored"

    @property
    def terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.TIMED_OUT, SessionState.ERRORED)


_ALLOWED = {
    SessionState.CREATED: {SessionState.AWAITING_ANSWER, SessionState.COMPLETED, SessionState.ERRORED},
    SessionState.AWAITING_ANSWER: {
        SessionState.AWAITING_ANSWER,
        SessionState.COMPLETED,
        SessionState.TIMED_OUT,
        SessionState.ERRORED,
    },
    SessionState.COMPLETED: set(),
    SessionState.TIMED_OUT: set(),
    SessionState.ERRORED: set(),
}


# =============================================================================
# Session
# =============================================================================

@dataclass
class InterviewSession:
    """
    One live interview.

    Attributes:
        member: The member being interviewed.
        channel: Private thread the interview runs in; None until the
            thread has been created.
        answers: Question key to answer text, in question order.
        question_index: Index of the question being waited on, -1 before
            the first one is sent.
        question_sent_at: When the current question was posted (UTC).
        deadline: When the current question times out (UTC).
    """

    member: discord.Member
    channel: Optional[Any] = None
    answers: Dict[str, str] = field(default_factory=dict)
    state: SessionState = SessionState.CREATED
    question_index: int = -1
    question_sent_at: Optional[datetime] = None
    deadline: Optional[datetime] = None

    @property
    def member_id(self) -> int:
        return self.member.id

    @property
    def is_terminal(self) -> bool:
        return self.state.terminal

    def _transition(self, new_state: SessionState) -> None:
        if new_state not in _ALLOWED[self.state]:
            raise InvalidSessionTransition(
                f"Session for {self.member_id}: {self.state.value} -> {new_state.value}"
            )
        self.state = new_state

    def ask(self, index: int, sent_at: datetime, deadline: datetime) -> None:
        """Mark question ``index`` as sent and start waiting for its answer."""
        self._transition(SessionState.AWAITING_ANSWER)
        self.question_index = index
        self.question_sent_at = sent_at
        self.deadline = deadline

    def record_answer(self, key: str, text: str) -> None:
        if self.state is not SessionState.AWAITING_ANSWER:
            raise InvalidSessionTransition(
                f"Session for {self.member_id}: cannot record an answer while {self.state.value}"
            )
        self.answers[key] = text

    def complete(self) -> None:
        self._transition(SessionState.COMPLETED)

    def time_out(self) -> None:
        self._transition(SessionState.TIMED_OUT)

    def fail(self) -> None:
        """Move to ERRORED unless already in a terminal state."""
        if not self.is_terminal:
            self._transition(SessionState.ERRORED)


__all__ = ["SessionState", "InterviewSession"]

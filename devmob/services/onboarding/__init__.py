"""
DevMob Onboarding Bot - Onboarding Package
==========================================

Interview sessions, returning-member detection, roles and announcements.

Server: the DevMob
"""

from .session import InterviewSession, SessionState
from .interview import InterviewOrchestrator
from .classifier import MembershipClassifier, is_story_embed, message_refers_to
from .roles import RoleManager
from .announcer import Announcer
from .service import JoinOutcome, OnboardingService

__all__ = [
    "InterviewSession",
    "SessionState",
    "InterviewOrchestrator",
    "MembershipClassifier",
    "is_story_embed",
    "message_refers_to",
    "RoleManager",
    "Announcer",
    "JoinOutcome",
    "OnboardingService",
]

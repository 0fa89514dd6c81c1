"""
DevMob Onboarding Bot - Error Types
===================================

Exceptions shared across services.

DESIGN:
    None of these cross an event-handler boundary. Provider and
    persistence errors are caught where they happen and turned into a
    placeholder text or a logged failure; session errors are turned into
    a user-facing reply by the command that triggered them.

Server: the DevMob
"""

from typing import Optional


class OnboardingError(Exception):
    """Base class for all bot-specific errors."""


class ProviderError(OnboardingError):
    """Text-generation call failed (non-2xx or transport failure)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmptyCompletionError(ProviderError):
    """Provider answered successfully but returned no text."""


class PersistenceError(OnboardingError):
    """Reading or writing a JSON store failed."""


class SessionAlreadyActive(OnboardingError):
    """An interview is already running for this member."""

    def __init__(self, member_id: int) -> None:
        super().__init__(f"Interview already active for member {member_id}")
        self.member_id = member_id


class InvalidSessionTransition(OnboardingError):
    """An interview session was asked to move to a state it cannot reach."""


__all__ = [
    "OnboardingError",
    "ProviderError",
    "EmptyCompletionError",
    "PersistenceError",
    "SessionAlreadyActive",
    "InvalidSessionTransition",
]

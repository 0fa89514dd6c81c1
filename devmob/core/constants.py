"""
DevMob Onboarding Bot - Centralized Constants
=============================================

Magic numbers live here. Import from this module instead of hardcoding.

Server: the DevMob
"""

# =============================================================================
# Network
# =============================================================================

DEFAULT_HTTP_PORT = 8080

# =============================================================================
# Interview
# =============================================================================

INTERVIEW_TIMEOUT_DEFAULT = 180       # Seconds to wait for each answer
INTERVIEW_TIMEOUT_MIN = 30
INTERVIEW_TIMEOUT_MAX = 900
ANSWER_POLL_INTERVAL_DEFAULT = 1.0    # Seconds between history reads
ANSWER_HISTORY_LIMIT = 10             # Messages read per poll
THREAD_NAME_PREFIX = "onboarding-"
THREAD_AUTO_ARCHIVE_MINUTES = 1440
PENDING_INVITERS_LIMIT = 1000        # Join-time inviters kept in memory

# =============================================================================
# Story Channel
# =============================================================================

STORY_SCAN_LIMIT_DEFAULT = 200        # Messages scanned by the classifier
STORY_TITLE_MAX_LENGTH = 100
EMBED_DESCRIPTION_LIMIT = 4096
MEMBER_ID_FOOTER_PREFIX = "Member ID:"
STORY_FOOTER_INVITED = "🟢 Invited"
STORY_FOOTER_NO_INVITE = "🟠 No invite"
RETURN_FOOTER = "Returning member"

# =============================================================================
# Story Generation
# =============================================================================

AI_MODEL_DEFAULT = "gpt-4o-mini"
STORY_MAX_TOKENS = 800
STORY_TEMPERATURE = 1.0
AI_API_TIMEOUT = 60.0

# =============================================================================
# Startup
# =============================================================================

LOGIN_MAX_ATTEMPTS = 5
LOGIN_BACKOFF_BASE = 30.0             # First retry delay, doubled per attempt
LOGIN_BACKOFF_MAX = 120.0


__all__ = [
    "DEFAULT_HTTP_PORT",
    "INTERVIEW_TIMEOUT_DEFAULT",
    "INTERVIEW_TIMEOUT_MIN",
    "INTERVIEW_TIMEOUT_MAX",
    "ANSWER_POLL_INTERVAL_DEFAULT",
    "ANSWER_HISTORY_LIMIT",
    "THREAD_NAME_PREFIX",
    "THREAD_AUTO_ARCHIVE_MINUTES",
    "PENDING_INVITERS_LIMIT",
    "STORY_SCAN_LIMIT_DEFAULT",
    "STORY_TITLE_MAX_LENGTH",
    "EMBED_DESCRIPTION_LIMIT",
    "MEMBER_ID_FOOTER_PREFIX",
    "STORY_FOOTER_INVITED",
    "STORY_FOOTER_NO_INVITE",
    "RETURN_FOOTER",
    "AI_MODEL_DEFAULT",
    "STORY_MAX_TOKENS",
    "STORY_TEMPERATURE",
    "AI_API_TIMEOUT",
    "LOGIN_MAX_ATTEMPTS",
    "LOGIN_BACKOFF_BASE",
    "LOGIN_BACKOFF_MAX",
]

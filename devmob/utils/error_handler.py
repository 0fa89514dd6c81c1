"""
DevMob Onboarding Bot - Error Handler
=====================================

Categorized logging for unexpected exceptions at handler boundaries.

Features:
- Error categorization (discord, provider, storage, network)
- Recovery suggestion per category
- Member context capture
- Critical error dumps under logs/errors

Server: the DevMob
"""

import json
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

import discord
import openai

from devmob.core.errors import PersistenceError, ProviderError
from devmob.core.logger import logger, LOGS_DIR


class ErrorContext:
    """Captures and formats error context."""

    @staticmethod
    def get_full_context(e: Exception, location: str, **kwargs) -> Dict[str, Any]:
        context = {
            "timestamp": datetime.now().isoformat(),
            "location": location,
            "error_type": type(e).__name__,
            "error_message": str(e),
            "traceback": "".join(traceback.format_exception(type(e), e, e.__traceback__)),
            "python_version": sys.version,
            "additional_context": {k: str(v)[:200] for k, v in kwargs.items()},
        }

        member = kwargs.get("member")
        if isinstance(member, discord.Member):
            context["member_context"] = {
                "name": str(member),
                "id": member.id,
                "roles": [role.name for role in member.roles],
                "joined_at": member.joined_at.isoformat() if member.joined_at else None,
            }

        return context


class ErrorHandler:
    """Error handling with category and recovery hints."""

    ERROR_CATEGORIES = {
        "discord": (discord.Forbidden, discord.NotFound, discord.HTTPException),
        "provider": (ProviderError, openai.OpenAIError),
        "storage": (PersistenceError, json.JSONDecodeError),
        "network": (ConnectionError, TimeoutError, OSError),
    }

    RECOVERY_SUGGESTIONS = {
        discord.Forbidden: "Check bot permissions and role hierarchy in server settings",
        discord.NotFound: "Resource not found - check channel and role ids",
        discord.HTTPException: "Discord API issue - the next event will try again",
        openai.RateLimitError: "Provider rate limit - stories fall back to placeholders",
        openai.AuthenticationError: "Provider rejected the key - check OPENAI_API_KEY",
        ProviderError: "Provider error - stories fall back to placeholders",
        PersistenceError: "Data file issue - check DATA_DIR permissions and disk space",
        ConnectionError: "Network connection issue - check connectivity",
        TimeoutError: "Request timed out",
    }

    @classmethod
    def categorize_error(cls, e: Exception) -> str:
        for category, error_types in cls.ERROR_CATEGORIES.items():
            if isinstance(e, error_types):
                return category
        return "general"

    @classmethod
    def get_recovery_suggestion(cls, e: Exception) -> str:
        for error_type, suggestion in cls.RECOVERY_SUGGESTIONS.items():
            if isinstance(e, error_type):
                return suggestion
        return "Unexpected error - check logs for details"

    @classmethod
    def handle(cls, e: Exception, location: str, critical: bool = False, **context) -> None:
        """
        Log an exception with its category and a recovery hint.

        Args:
            e: The exception.
            location: Where the error occurred.
            critical: Also dump the full context to logs/errors.
            **context: Additional context (member, channel ...).
        """
        category = cls.categorize_error(e)
        suggestion = cls.get_recovery_suggestion(e)
        full_context = ErrorContext.get_full_context(e, location, **context)

        details = [
            ("Location", location),
            ("Category", category),
            ("Error Type", full_context["error_type"]),
            ("Error", full_context["error_message"][:200]),
            ("Recovery", suggestion),
        ]
        details.extend((k, v) for k, v in full_context["additional_context"].items())

        if critical:
            logger.error("💥 Critical Error", details)
            logger.info(f"Traceback:\n{full_context['traceback']}")
            cls._store_critical_error(full_context)
        else:
            logger.warning(f"[{category.upper()}] Error in {location}", details)

    @staticmethod
    def _store_critical_error(context: Dict[str, Any]) -> None:
        try:
            error_dir = Path(LOGS_DIR) / "errors"
            error_dir.mkdir(exist_ok=True, parents=True)

            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            error_file = error_dir / f"error_{timestamp}.json"

            with open(error_file, "w", encoding="utf-8") as f:
                json.dump(context, f, indent=2, default=str)

            logger.info(f"Critical error saved to {error_file}")
        except OSError as save_error:
            logger.info(f"Failed to save error details: {save_error}")


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["ErrorContext", "ErrorHandler"]

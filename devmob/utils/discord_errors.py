"""
DevMob Onboarding Bot - Discord HTTP Error Logging
==================================================

One place that decides how loud a failed Discord call should be.

Onboarding touches roles, threads and channels the bot may not be
allowed to see. Missing permissions and vanished resources are expected
operating conditions and log as warnings; anything else is an error.

Usage:
    try:
        await member.add_roles(role)
    except discord.HTTPException as e:
        log_http_error(e, "Add Role", [("Member", str(member))])

Server: the DevMob
"""

from typing import Dict, List, Optional, Tuple

import discord

from devmob.core.logger import logger


# status -> (label, emoji, is_warning)
_STATUS_TABLE: Dict[int, Tuple[str, str, bool]] = {
    400: ("Bad Request", "❌", False),
    401: ("Unauthorized", "🔑", False),
    403: ("Forbidden", "🚫", True),
    404: ("Not Found", "❓", True),
    429: ("Rate Limited", "🚦", True),
    500: ("Discord Server Error", "🔥", False),
    502: ("Bad Gateway", "🔥", False),
    503: ("Service Unavailable", "🔥", False),
    504: ("Gateway Timeout", "⏳", False),
}

_UNKNOWN = ("Failed", "❌", False)


def describe_status(status: Optional[int]) -> str:
    """Human label for an HTTP status, ``"Failed"`` when unknown."""
    return _STATUS_TABLE.get(status, _UNKNOWN)[0]


def log_http_error(
    e: discord.HTTPException,
    operation: str,
    context: Optional[List[Tuple[str, str]]] = None,
) -> None:
    """Log ``e`` under ``operation`` with the caller's context rows."""
    status = getattr(e, "status", None)
    label, emoji, is_warning = _STATUS_TABLE.get(status, _UNKNOWN)

    details = [("Status", f"{status} ({label})")]
    code = getattr(e, "code", 0)
    if code:
        details.append(("Discord Code", str(code)))
    details.append(("Error", (getattr(e, "text", None) or str(e))[:200]))

    retry_after = getattr(e, "retry_after", None)
    if retry_after:
        details.append(("Retry After", f"{retry_after:.1f}s"))
    details.extend(context or [])

    title = f"{emoji} {operation} {label}"
    if is_warning:
        logger.warning(title, details)
    else:
        logger.error(title, details)


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["describe_status", "log_http_error"]

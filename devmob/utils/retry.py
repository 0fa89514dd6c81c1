"""
DevMob Onboarding Bot - Retry Utilities
=======================================

Bounded exponential backoff, used for the gateway login.

The interview path never retries: a failed Discord call there is logged
and the step is abandoned.

Server: the DevMob
"""

import asyncio
from typing import Any, Awaitable, Callable, Tuple, Type

import discord

from devmob.core.logger import logger

# Transient failures worth another attempt
RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (
    discord.HTTPException,
    asyncio.TimeoutError,
    ConnectionError,
)


def compute_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay after failed attempt ``attempt`` (0-based): base, 2*base, 4*base ... capped at ``max_delay``."""
    return min(base_delay * (2 ** attempt), max_delay)


async def retry_async(
    coro_func: Callable[..., Awaitable[Any]],
    *args,
    operation: str = "Operation",
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    exceptions: Tuple[Type[BaseException], ...] = RETRYABLE_EXCEPTIONS,
    **kwargs,
) -> Any:
    """
    Await ``coro_func(*args, **kwargs)``, retrying on ``exceptions``.

    Makes at most ``max_retries + 1`` attempts. Exceptions outside
    ``exceptions`` propagate immediately.

    Raises:
        The last retryable exception once every attempt has failed.
    """
    attempts = max_retries + 1

    for attempt in range(attempts):
        try:
            return await coro_func(*args, **kwargs)
        except exceptions as e:
            if attempt == max_retries:
                logger.error(f"{operation} Gave Up", [
                    ("Attempts", str(attempts)),
                    ("Error Type", type(e).__name__),
                    ("Error", str(e)[:100]),
                ])
                raise

            delay = compute_delay(attempt, base_delay, max_delay)
            logger.warning(f"{operation} Failed, Retrying", [
                ("Attempt", f"{attempt + 1}/{attempts}"),
                ("Error Type", type(e).__name__),
                ("Next Try In", f"{delay:.0f}s"),
            ])
            await asyncio.sleep(delay)


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["RETRYABLE_EXCEPTIONS", "compute_delay", "retry_async"]

"""
DevMob Onboarding Bot - Async Utilities
=======================================

Every interview runs as its own task. An exception escaping one must be
logged with enough context to find the member again, and must never
reach the event loop's "Task exception was never retrieved" handler.

Server: the DevMob
"""

import asyncio
from typing import Any, Coroutine, List, Optional, Tuple

from devmob.core.logger import logger


def create_safe_task(
    coro: Coroutine[Any, Any, Any],
    name: str = "Background Task",
    context: Optional[List[Tuple[str, str]]] = None,
) -> asyncio.Task:
    """
    Schedule ``coro`` and log whatever it raises under ``name``.

    Cancellation still propagates so shutdown can await the task.
    """
    async def guarded() -> None:
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"{name} Crashed", [
                *(context or []),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:200]),
            ])

    return asyncio.create_task(guarded(), name=name)


__all__ = ["create_safe_task"]

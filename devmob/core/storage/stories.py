"""
DevMob Onboarding Bot - Story Store
===================================

Member biographies persisted in stories.json.

A stored story is the primary signal that a member already finished
onboarding. Saves are last-write-wins.

Server: the DevMob
"""

from pathlib import Path
from typing import Dict, Optional

from devmob.core.errors import PersistenceError
from devmob.core.logger import logger
from devmob.core.storage.base import JsonStore


class StoryStore:
    """Maps member id to biography text."""

    FILE_NAME = "stories.json"

    def __init__(self, data_dir: Path) -> None:
        self._store = JsonStore(Path(data_dir) / self.FILE_NAME, "Story Store")

    @property
    def path(self) -> Path:
        return self._store.path

    async def get(self, member_id: int) -> Optional[str]:
        """Stored biography, or None. Read failures are logged and read as absent."""
        try:
            value = await self._store.get_raw(member_id)
        except PersistenceError as e:
            logger.error("Story Load Failed", [
                ("Member ID", str(member_id)),
                ("Error", str(e)[:100]),
            ])
            return None
        return value if isinstance(value, str) and value else None

    async def has(self, member_id: int) -> bool:
        return await self.get(member_id) is not None

    async def save(self, member_id: int, story: str) -> bool:
        """
        Store a biography, replacing any previous one.

        Returns:
            True when the file was written. Failures are logged, never raised.
        """
        def _apply(data: Dict[str, str]) -> None:
            data[str(member_id)] = story

        try:
            await self._store.mutate(_apply)
        except PersistenceError as e:
            logger.error("Story Save Failed", [
                ("Member ID", str(member_id)),
                ("Error", str(e)[:100]),
            ])
            return False

        logger.tree("Story Saved", [
            ("Member ID", str(member_id)),
            ("Length", f"{len(story)} chars"),
        ], emoji="💾")
        return True

    async def delete(self, member_id: int) -> bool:
        """Remove a biography. Returns True if one was removed."""
        def _apply(data: Dict[str, str]) -> bool:
            return data.pop(str(member_id), None) is not None

        try:
            removed = await self._store.mutate(_apply)
        except PersistenceError as e:
            logger.error("Story Delete Failed", [
                ("Member ID", str(member_id)),
                ("Error", str(e)[:100]),
            ])
            return False

        if removed:
            logger.tree("Story Deleted", [("Member ID", str(member_id))], emoji="🗑️")
        return removed

    async def count(self) -> int:
        try:
            return len(await self._store.load_all())
        except PersistenceError:
            return 0


__all__ = ["StoryStore"]

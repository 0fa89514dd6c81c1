"""
DevMob Onboarding Bot - Invite History Store
============================================

Who invited each member, recorded once at first join.

DESIGN:
    Records are write-once: a member who leaves and rejoins keeps the
    inviter from the first join. The record also feeds the interview
    when the in-memory inviter from the join event is gone (bot restart
    between join and /join).

Server: the DevMob
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from devmob.core.errors import PersistenceError
from devmob.core.logger import logger
from devmob.core.storage.base import JsonStore


# =============================================================================
# Record
# =============================================================================

@dataclass(frozen=True)
class InviteHistoryRecord:
    """One member's invite provenance. Empty strings mean unknown."""

    inviter_name: str
    inviter_id: Optional[int]
    invite_code: str
    join_date: str  # ISO-8601, UTC

    @property
    def known(self) -> bool:
        return self.inviter_id is not None

    @property
    def joined_at(self) -> Optional[datetime]:
        try:
            return datetime.fromisoformat(self.join_date)
        except ValueError:
            return None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InviteHistoryRecord":
        inviter_id = data.get("inviter_id")
        return cls(
            inviter_name=str(data.get("inviter_name") or ""),
            inviter_id=int(inviter_id) if inviter_id not in (None, "") else None,
            invite_code=str(data.get("invite_code") or ""),
            join_date=str(data.get("join_date") or ""),
        )


# =============================================================================
# Store
# =============================================================================

class InviteHistoryStore:
    """Maps member id to InviteHistoryRecord in invite_history.json."""

    FILE_NAME = "invite_history.json"

    def __init__(self, data_dir: Path) -> None:
        self._store = JsonStore(Path(data_dir) / self.FILE_NAME, "Invite History")

    @property
    def path(self) -> Path:
        return self._store.path

    async def get(self, member_id: int) -> Optional[InviteHistoryRecord]:
        try:
            raw = await self._store.get_raw(member_id)
        except PersistenceError as e:
            logger.error("Invite History Load Failed", [
                ("Member ID", str(member_id)),
                ("Error", str(e)[:100]),
            ])
            return None
        if not isinstance(raw, dict):
            return None
        try:
            return InviteHistoryRecord.from_dict(raw)
        except ValueError as e:
            logger.warning("Invite History Record Malformed", [
                ("Member ID", str(member_id)),
                ("Error", str(e)[:100]),
            ])
            return None

    async def record(self, member_id: int, record: InviteHistoryRecord) -> bool:
        """
        Store the record unless the member already has one.

        Returns:
            True if a new record was written, False if one existed or the
            write failed.
        """
        def _apply(data: Dict[str, Any]) -> bool:
            key = str(member_id)
            if key in data:
                return False
            data[key] = record.to_dict()
            return True

        try:
            written = await self._store.mutate(_apply)
        except PersistenceError as e:
            logger.error("Invite History Save Failed", [
                ("Member ID", str(member_id)),
                ("Error", str(e)[:100]),
            ])
            return False

        if written:
            logger.tree("Invite History Recorded", [
                ("Member ID", str(member_id)),
                ("Inviter", record.inviter_name or "Unknown"),
                ("Code", record.invite_code or "-"),
            ], emoji="📇")
        else:
            logger.debug(f"Invite history already present for {member_id}")
        return written


__all__ = ["InviteHistoryRecord", "InviteHistoryStore"]

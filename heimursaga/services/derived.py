"""Read-only values derived from an entry's place in its expedition."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from heimursaga.models.entry import Entry
from heimursaga.models.expedition import Expedition


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def expedition_day(entry_date: Optional[datetime], start_date: Optional[datetime]) -> Optional[int]:
    """Day N of the expedition, where the start date is Day 1. Never below 1."""
    if entry_date is None or start_date is None:
        return None
    diff_days = (_as_utc(entry_date) - _as_utc(start_date)) // timedelta(days=1)
    return max(1, diff_days + 1)


@dataclass
class DerivedFields:
    entry_number: Optional[int] = None
    expedition_day: Optional[int] = None
    expedition_entries_count: Optional[int] = None


class DerivedFieldsCalculator:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _published_siblings(expedition_id: int):
        return (
            Entry.expedition_id == expedition_id,
            Entry.deleted_at.is_(None),
            Entry.is_draft.is_(False),
        )

    async def entry_number(self, entry: Entry) -> Optional[int]:
        """1-based chronological position among published siblings; same-date ties ordered by id."""
        if entry.expedition_id is None or entry.date is None:
            return None
        earlier = or_(
            Entry.date < entry.date,
            and_(Entry.date == entry.date, Entry.id < entry.id),
        )
        result = await self.db.execute(
            select(func.count(Entry.id)).where(
                *self._published_siblings(entry.expedition_id), earlier
            )
        )
        return (result.scalar() or 0) + 1

    async def expedition_entries_count(self, expedition_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Entry.id)).where(*self._published_siblings(expedition_id))
        )
        return result.scalar() or 0

    async def compute(self, entry: Entry, expedition: Optional[Expedition]) -> DerivedFields:
        if entry.expedition_id is None:
            return DerivedFields()
        return DerivedFields(
            entry_number=await self.entry_number(entry),
            expedition_day=expedition_day(entry.date, expedition.start_date if expedition else None),
            expedition_entries_count=await self.expedition_entries_count(entry.expedition_id),
        )

"""Access gate for sponsored entries.

Applied after visibility has admitted an entry. The author and admins always
pass; anyone else needs a qualifying sponsorship of the entry's author.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from heimursaga.models.entry import Entry
from heimursaga.models.sponsorship import Sponsorship, SponsorshipStatus
from heimursaga.schemas.session import SessionContext

logger = logging.getLogger(__name__)


def _qualifying(now: datetime):
    return (
        Sponsorship.status == SponsorshipStatus.ACTIVE,
        Sponsorship.expiry > now,
        Sponsorship.deleted_at.is_(None),
    )


class SponsorshipGate:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def bypasses(entry: Entry, requester: SessionContext) -> bool:
        """Authors see their own sponsored entries; admins see all of them."""
        if requester.is_authenticated and entry.author_id == requester.explorer_id:
            return True
        return requester.is_admin

    async def has_active_sponsorship(
        self, sponsor_id: int, creator_id: int, now: Optional[datetime] = None
    ) -> bool:
        if not sponsor_id:
            return False
        now = now or datetime.now(timezone.utc)
        result = await self.db.execute(
            select(Sponsorship.id)
            .where(
                Sponsorship.sponsor_id == sponsor_id,
                Sponsorship.sponsored_explorer_id == creator_id,
                *_qualifying(now),
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def sponsored_authors(
        self, sponsor_id: int, author_ids: Iterable[int], now: Optional[datetime] = None
    ) -> Set[int]:
        """Return the subset of ``author_ids`` that ``sponsor_id`` actively sponsors, in one query."""
        author_ids = set(author_ids)
        if not sponsor_id or not author_ids:
            return set()
        now = now or datetime.now(timezone.utc)
        result = await self.db.execute(
            select(Sponsorship.sponsored_explorer_id)
            .where(
                Sponsorship.sponsor_id == sponsor_id,
                Sponsorship.sponsored_explorer_id.in_(author_ids),
                *_qualifying(now),
            )
            .distinct()
        )
        return set(result.scalars().all())

    async def can_view_sponsored(self, entry: Entry, requester: SessionContext) -> bool:
        if not entry.sponsored:
            return True
        if self.bypasses(entry, requester):
            return True
        if not requester.is_authenticated:
            return False
        return await self.has_active_sponsorship(requester.explorer_id, entry.author_id)

    async def filter_entries(self, entries: List[Entry], requester: SessionContext) -> List[Entry]:
        """Drop sponsored entries the requester may not see, resolving each distinct author once."""
        gated_authors = {
            entry.author_id
            for entry in entries
            if entry.sponsored and not self.bypasses(entry, requester)
        }
        allowed: Set[int] = set()
        if gated_authors and requester.is_authenticated:
            allowed = await self.sponsored_authors(requester.explorer_id, gated_authors)

        kept = [
            entry
            for entry in entries
            if not entry.sponsored
            or self.bypasses(entry, requester)
            or entry.author_id in allowed
        ]
        if len(kept) != len(entries):
            logger.debug(f"Dropped {len(entries) - len(kept)} sponsored entries for explorer {requester.explorer_id}")
        return kept

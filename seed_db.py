import asyncio
from datetime import datetime, timedelta, timezone

from heimursaga.database import Base, async_session, engine
from heimursaga.models.entry import Entry
from heimursaga.models.expedition import Expedition
from heimursaga.models.explorer import Explorer, ExplorerRole
from heimursaga.models.follow import ExplorerFollow
from heimursaga.models.sponsorship import Sponsorship, SponsorshipStatus


async def async_main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    now = datetime.now(timezone.utc)

    async with async_session() as session:
        # Explorers
        admin = Explorer(username="admin", email="admin@example.com", role=ExplorerRole.ADMIN)
        ada = Explorer(username="ada", email="ada@example.com", role=ExplorerRole.CREATOR)
        ben = Explorer(username="ben", email="ben@example.com", role=ExplorerRole.USER)
        cleo = Explorer(username="cleo", email="cleo@example.com", role=ExplorerRole.USER)
        session.add_all([admin, ada, ben, cleo])
        await session.flush()

        # Ada's expedition with a handful of entries
        patagonia = Expedition(
            author_id=ada.id,
            title="Crossing Patagonia",
            start_date=now - timedelta(days=20),
        )
        session.add(patagonia)
        await session.flush()

        entries = [
            Entry(author_id=ada.id, expedition_id=patagonia.id, title="Leaving El Chaltén",
                  content="Wind, always wind.", place="El Chaltén", date=now - timedelta(days=20)),
            Entry(author_id=ada.id, expedition_id=patagonia.id, title="Glacier morning",
                  content="Blue ice under a white sky.", place="Viedma", date=now - timedelta(days=14)),
            Entry(author_id=ada.id, expedition_id=patagonia.id, title="Sponsors' notes",
                  content="Gear list and route changes.", place="Tres Lagos",
                  date=now - timedelta(days=9), sponsored=True),
            Entry(author_id=ada.id, expedition_id=patagonia.id, title="Unfinished",
                  content="", place="", date=now - timedelta(days=2), is_draft=True, public=False),
            Entry(author_id=ben.id, title="First post", content="Hello from the trailhead.",
                  place="Bariloche", date=now - timedelta(days=1)),
        ]
        session.add_all(entries)

        # Ben sponsors Ada; Cleo's sponsorship has lapsed
        session.add_all([
            Sponsorship(sponsor_id=ben.id, sponsored_explorer_id=ada.id,
                        status=SponsorshipStatus.ACTIVE, expiry=now + timedelta(days=30)),
            Sponsorship(sponsor_id=cleo.id, sponsored_explorer_id=ada.id,
                        status=SponsorshipStatus.ACTIVE, expiry=now - timedelta(days=1)),
            ExplorerFollow(follower_id=ben.id, followee_id=ada.id),
        ])

        ada.entries_count = 4
        ben.entries_count = 1
        await session.commit()
    print("Database seeded with explorers, an expedition, entries and sponsorships.")

asyncio.run(async_main())

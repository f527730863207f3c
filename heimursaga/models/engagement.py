"""Like / bookmark / view relation rows.

A row's existence is the source of truth; the counters on ``Entry`` are caches.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column

from heimursaga.database import Base


class EntryLike(Base):
    __tablename__ = "entry_likes"

    entry_id: Mapped[int] = mapped_column(ForeignKey("entries.id", ondelete="CASCADE"), primary_key=True)
    explorer_id: Mapped[int] = mapped_column(ForeignKey("explorers.id", ondelete="CASCADE"), primary_key=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class EntryBookmark(Base):
    __tablename__ = "entry_bookmarks"

    entry_id: Mapped[int] = mapped_column(ForeignKey("entries.id", ondelete="CASCADE"), primary_key=True)
    explorer_id: Mapped[int] = mapped_column(ForeignKey("explorers.id", ondelete="CASCADE"), primary_key=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class EntryView(Base):
    __tablename__ = "entry_views"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    entry_id: Mapped[int] = mapped_column(
        ForeignKey("entries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    viewer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("explorers.id", ondelete="CASCADE"))
    viewer_ip: Mapped[Optional[str]] = mapped_column(String(45))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("entry_id", "viewer_id", name="uq_entry_views_entry_viewer"),
        # Anonymous views dedup on IP; authenticated rows also carry the IP
        Index(
            "uq_entry_views_entry_ip_anonymous",
            "entry_id",
            "viewer_ip",
            unique=True,
            sqlite_where=text("viewer_id IS NULL"),
            postgresql_where=text("viewer_id IS NULL"),
        ),
    )

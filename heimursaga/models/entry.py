"""Entry model — a journal post with visibility flags and engagement counters."""

import enum
import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from heimursaga.database import Base


class EntryVisibility(str, enum.Enum):
    PUBLIC = "public"
    SPONSORS_ONLY = "sponsors-only"
    PRIVATE = "private"


class EntryType(str, enum.Enum):
    STANDARD = "standard"
    PHOTO_ESSAY = "photo-essay"
    DATA_LOG = "data-log"
    WAYPOINT = "waypoint"


def generate_public_id() -> str:
    return secrets.token_hex(8)


class Entry(Base):
    __tablename__ = "entries"

    # ── Identity ──
    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    public_id: Mapped[str] = mapped_column(
        String(32), unique=True, index=True, nullable=False, default=generate_public_id
    )
    author_id: Mapped[int] = mapped_column(
        ForeignKey("explorers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expedition_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("expeditions.id", ondelete="SET NULL"), index=True
    )

    # ── Content ──
    title: Mapped[str] = mapped_column(String(300), default="")
    content: Mapped[str] = mapped_column(Text, default="")
    place: Mapped[str] = mapped_column(String(300), default="")
    date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    entry_type: Mapped[EntryType] = mapped_column(Enum(EntryType), default=EntryType.STANDARD)

    # ── Visibility ──
    public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sponsored: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    visibility: Mapped[EntryVisibility] = mapped_column(
        Enum(EntryVisibility), default=EntryVisibility.PUBLIC
    )
    comments_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    email_sent: Mapped[bool] = mapped_column(Boolean, default=False)

    # ── Counters (caches of the relation tables) ──
    likes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bookmarks_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    comments_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    views_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # ── Timestamps ──
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

"""Explorer model — a platform account that writes and reads entries."""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from heimursaga.database import Base


class ExplorerRole(str, enum.Enum):
    ADMIN = "admin"
    CREATOR = "creator"
    USER = "user"


class Explorer(Base):
    __tablename__ = "explorers"

    # ── Identity ──
    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    username: Mapped[str] = mapped_column(
        String(100), unique=True, index=True, nullable=False
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    role: Mapped[ExplorerRole] = mapped_column(Enum(ExplorerRole), default=ExplorerRole.USER)

    # ── Denormalized counters ──
    bookmarks_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    entries_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # ── Timestamps ──
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

"""Sponsor → creator relationship; grants access to sponsored entries while active."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from heimursaga.database import Base


class SponsorshipStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CONFIRMED = "confirmed"
    CANCELED = "canceled"


class Sponsorship(Base):
    __tablename__ = "sponsorships"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    sponsor_id: Mapped[int] = mapped_column(
        ForeignKey("explorers.id", ondelete="CASCADE"), nullable=False
    )
    sponsored_explorer_id: Mapped[int] = mapped_column(
        ForeignKey("explorers.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[SponsorshipStatus] = mapped_column(
        Enum(SponsorshipStatus), default=SponsorshipStatus.PENDING
    )
    expiry: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("ix_sponsorships_sponsor_creator", "sponsor_id", "sponsored_explorer_id"),
    )

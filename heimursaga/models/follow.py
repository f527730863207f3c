"""Explorer follow relation."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from heimursaga.database import Base


class ExplorerFollow(Base):
    __tablename__ = "explorer_follows"

    follower_id: Mapped[int] = mapped_column(ForeignKey("explorers.id", ondelete="CASCADE"), primary_key=True)
    followee_id: Mapped[int] = mapped_column(ForeignKey("explorers.id", ondelete="CASCADE"), primary_key=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

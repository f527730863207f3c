"""In-app notifications."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from heimursaga.database import Base


class NotificationContext(str, enum.Enum):
    LIKE = "like"
    FOLLOW = "follow"
    SPONSORSHIP = "sponsorship"
    COMMENT = "comment"
    COMMENT_REPLY = "comment_reply"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    explorer_id: Mapped[int] = mapped_column(
        ForeignKey("explorers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    context: Mapped[NotificationContext] = mapped_column(Enum(NotificationContext), nullable=False)
    mention_explorer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("explorers.id", ondelete="CASCADE")
    )
    mention_entry_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("entries.id", ondelete="CASCADE")
    )
    body: Mapped[Optional[str]] = mapped_column(Text)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

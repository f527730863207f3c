"""In-app notification persistence, fed by ``Events.NOTIFICATION_CREATE``."""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from heimursaga.database import get_session_factory
from heimursaga.models.notification import Notification, NotificationContext
from heimursaga.services.events import EventDispatcher, Events

logger = logging.getLogger(__name__)


def like_notification_payload(recipient_id: int, actor_id: int, entry_id: int, body: Optional[str]) -> Dict[str, Any]:
    return {
        "context": NotificationContext.LIKE,
        "recipient_id": recipient_id,
        "actor_id": actor_id,
        "subject_id": entry_id,
        "body": body,
    }


class NotificationService:
    def __init__(self, session_factory: async_sessionmaker = None):
        self.session_factory = session_factory or get_session_factory()

    async def create(self, payload: Dict[str, Any]) -> None:
        """Persist one notification for ``payload["recipient_id"]``."""
        context = NotificationContext(payload["context"])
        async with self.session_factory() as db:
            db.add(
                Notification(
                    explorer_id=payload["recipient_id"],
                    context=context,
                    mention_explorer_id=payload.get("actor_id"),
                    mention_entry_id=payload.get("subject_id"),
                    body=payload.get("body"),
                )
            )
            await db.commit()
        logger.info(
            f"Notification ({context.value}) created for explorer {payload['recipient_id']}"
        )

    def register(self, events: EventDispatcher) -> None:
        events.on(Events.NOTIFICATION_CREATE, self.create)

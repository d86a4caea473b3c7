from typing import Optional

from petstore.errors import RequestError
from petstore.repositories.notifications import NotificationRepository
from petstore.schemas import Notification
from petstore.sql.datastore import DataStore


class NotificationService:
    def __init__(self, store: DataStore):
        self.repository = NotificationRepository(store)

    async def get_notifications(self, notification_id: Optional[str] = None) -> list[Notification]:
        """One notification by id, or all of them when no id is given."""
        if not notification_id:
            return await self.repository.find_all()
        try:
            parsed_id = int(notification_id)
        except ValueError as e:
            raise RequestError(original_error=e, detail="id must be an integer") from e
        return await self.repository.find(parsed_id)

    async def get_unread_count(self) -> int:
        return await self.repository.count("unread = :unread", {"unread": True})

    async def mark_read(self) -> int:
        """Mark every unread notification as read. Returns the number changed."""
        return await self.repository.update({"unread": False}, "unread = :unread", {"unread": True})

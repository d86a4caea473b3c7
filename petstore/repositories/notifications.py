import logging
from typing import Any, Mapping, Optional

from petstore.schemas import Notification
from petstore.sql.datastore import DataStore
from petstore.tracing import set_attribute, traced

logger = logging.getLogger(__name__)

NOTIFICATIONS_TABLE = "notifications"


class NotificationRepository:
    def __init__(self, store: DataStore):
        self.store = store

    async def find(self, notification_id: int) -> list[Notification]:
        with traced("NotificationRepository.find", {"id": notification_id}):
            rows = await self.store.select_where(
                NOTIFICATIONS_TABLE, "id = :id", {"id": notification_id}
            )
        return [Notification.model_validate(row) for row in rows]

    async def find_all(self) -> list[Notification]:
        """All notifications, newest first."""
        with traced("NotificationRepository.find_all") as span:
            rows = await self.store.select_all(NOTIFICATIONS_TABLE, "id desc")
            set_attribute(span, "result_count", len(rows))
        return [Notification.model_validate(row) for row in rows]

    async def count(self, where: str, params: Optional[Mapping[str, Any]] = None) -> int:
        with traced("NotificationRepository.count", {"query": where}):
            return await self.store.count(NOTIFICATIONS_TABLE, where, params)

    async def update(
        self,
        values: Mapping[str, Any],
        where: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """SET and WHERE parameters are passed separately; the store resolves name collisions."""
        with traced("NotificationRepository.update", {"query": where}):
            logger.debug(f"Updating notifications where {where}: set={dict(values)} args={dict(params or {})}")
            return await self.store.update(NOTIFICATIONS_TABLE, values, where, params)

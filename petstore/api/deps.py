from typing import Optional

from fastapi import Depends, Header, Request

from petstore.config import Settings, get_settings
from petstore.database import Database
from petstore.errors import RequestError
from petstore.services.notifications import NotificationService
from petstore.services.pets import PetService
from petstore.sql.datastore import DataStore


def get_database(request: Request) -> Database:
    """The handle built by the application lifespan."""
    return request.app.state.database


def get_store(database: Database = Depends(get_database)) -> DataStore:
    return database.store()


def get_pet_service(
    store: DataStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> PetService:
    return PetService(store, atomic_like_toggle=settings.atomic_like_toggle)


def get_notification_service(store: DataStore = Depends(get_store)) -> NotificationService:
    return NotificationService(store)


def check_client_id(
    x_client_id: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject requests whose x-client-id header does not match the configured one."""
    if settings.client_id and x_client_id != settings.client_id:
        raise RequestError("00002E")

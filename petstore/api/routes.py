import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from petstore.api.deps import (
    check_client_id,
    get_database,
    get_notification_service,
    get_pet_service,
)
from petstore.database import Database
from petstore.schemas import (
    HealthResponse,
    LikeRequest,
    LikeToggleRequest,
    MessageResponse,
    NotificationCount,
    NotificationListResponse,
    NotificationReadRequest,
    PetFilter,
    PetListResponse,
    Reservation,
    ReservationRequest,
)
from petstore.services.notifications import NotificationService
from petstore.services.pets import PetService

logger = logging.getLogger(__name__)

router = APIRouter()
v1 = APIRouter(prefix="/v1", dependencies=[Depends(check_client_id)])


@v1.get("/pets", response_model=PetListResponse)
async def get_pets(
    pet_filter: PetFilter = Depends(),
    service: PetService = Depends(get_pet_service),
):
    """
    List pets matching the optional query filters.
    """
    pets = await service.get_pets(pet_filter)
    return PetListResponse(data=pets)


@v1.post("/pets/{pet_id}/like", response_model=MessageResponse)
async def update_like(
    pet_id: str,
    request: LikeRequest,
    service: PetService = Depends(get_pet_service),
):
    """
    Like (value=true) or unlike (value=false) a pet.
    """
    await service.update_like_count(
        LikeToggleRequest(pet_id=pet_id, user_id=request.user_id, value=request.value)
    )
    return MessageResponse(code=200, msg="OK")


@v1.post("/pets/{pet_id}/reservation", response_model=MessageResponse)
async def create_reservation(
    pet_id: str,
    request: ReservationRequest,
    service: PetService = Depends(get_pet_service),
):
    await service.create_reservation(
        Reservation(
            pet_id=pet_id,
            user_id=request.user_id,
            email=request.email,
            full_name=request.full_name,
            reservation_date=request.reservation_date,
        )
    )
    return MessageResponse(code=200, msg="Created")


@v1.get("/notifications", response_model=NotificationListResponse)
async def get_notifications(
    id: Optional[str] = Query(default=None, description="Notification ID"),
    service: NotificationService = Depends(get_notification_service),
):
    notifications = await service.get_notifications(id)
    return NotificationListResponse(data=notifications)


@v1.get("/notifications/count", response_model=NotificationCount)
async def get_unread_notification_count(
    service: NotificationService = Depends(get_notification_service),
):
    count = await service.get_unread_count()
    return NotificationCount(data=count)


@v1.post("/notifications/read", response_model=MessageResponse)
async def mark_notifications_read(
    request: NotificationReadRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """
    Mark all unread notifications as read.
    """
    updated = await service.mark_read()
    logger.info(f"Marked {updated} notifications read (requested id={request.id!r})")
    return MessageResponse(code=200, msg="OK")


@router.get("/healthcheck", response_model=HealthResponse)
async def health_check(database: Database = Depends(get_database)):
    """
    Health check endpoint.
    """
    db_status = "healthy" if await database.ping() else "unhealthy"

    return HealthResponse(
        status="ok" if db_status == "healthy" else "degraded",
        database=db_status,
    )


router.include_router(v1)

import logging
from typing import Optional

from petstore.errors import BusinessError, QueryError
from petstore.repositories.pets import PetRepository
from petstore.repositories.reservations import ReservationRepository
from petstore.schemas import LikeToggleRequest, LikeToggleResult, Pet, PetFilter, Reservation
from petstore.services.like_toggle import LikeToggleSaga
from petstore.sql.datastore import DataStore
from petstore.tracing import set_attribute, traced

logger = logging.getLogger(__name__)


class PetService:
    """Pet listing, likes and reservations."""

    def __init__(self, store: DataStore, atomic_like_toggle: bool = True):
        self.store = store
        self.pets = PetRepository(store)
        self.reservations = ReservationRepository(store)
        self.like_toggle = LikeToggleSaga(store, atomic=atomic_like_toggle)

    async def get_pets(self, pet_filter: Optional[PetFilter] = None) -> list[Pet]:
        """Pets matching the filter, each with its reservation count."""
        with traced("PetService.get_pets", {"filter": pet_filter.model_dump_json() if pet_filter else None}) as span:
            pets = await self.pets.find(pet_filter)

            result = []
            for pet in pets:
                try:
                    count = await self.reservations.count_by_pet_id(pet.id)
                except BusinessError as e:
                    # A missing count should not hide the listing
                    logger.error(f"Failed to get reservation count for pet {pet.id}: {e}")
                    count = 0
                result.append(pet.model_copy(update={"reservation_count": count}))

            set_attribute(span, "result_count", len(result))
        return result

    async def update_like_count(self, request: LikeToggleRequest) -> LikeToggleResult:
        return await self.like_toggle.run(request)

    async def create_reservation(self, reservation: Reservation) -> None:
        with traced("PetService.create_reservation", {"pet_id": reservation.pet_id}):
            try:
                await self.reservations.create(reservation)
            except QueryError as e:
                raise QueryError("10003E", e) from e

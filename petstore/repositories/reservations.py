from datetime import datetime, timezone

from petstore.errors import RequestError
from petstore.schemas import Reservation
from petstore.sql.datastore import DataStore
from petstore.tracing import traced

RESERVATIONS_TABLE = "reservations"

RESERVATION_DATE_FORMAT = "%Y%m%d"


class ReservationRepository:
    def __init__(self, store: DataStore):
        self.store = store

    async def create(self, reservation: Reservation) -> None:
        """Store a reservation; the date arrives as YYYYMMDD."""
        with traced("ReservationRepository.create", {"pet_id": reservation.pet_id, "user_id": reservation.user_id}):
            try:
                reserved_at = datetime.strptime(
                    reservation.reservation_date, RESERVATION_DATE_FORMAT
                ).replace(tzinfo=timezone.utc)
            except ValueError as e:
                raise RequestError(original_error=e, detail="reservation_date must be YYYYMMDD") from e

            await self.store.insert(RESERVATIONS_TABLE, {
                "pet_id": reservation.pet_id,
                "user_id": reservation.user_id,
                "email": reservation.email,
                "user_name": reservation.full_name,
                "reservation_datetime": reserved_at,
            })

    async def count_by_pet_id(self, pet_id: str) -> int:
        with traced("ReservationRepository.count_by_pet_id", {"pet_id": pet_id}):
            return await self.store.count(RESERVATIONS_TABLE, "pet_id = :pet_id", {"pet_id": pet_id})

from petstore.repositories.favorites import FavoriteRepository
from petstore.repositories.notifications import NotificationRepository
from petstore.repositories.pets import PetRepository
from petstore.repositories.reservations import ReservationRepository

__all__ = [
    "FavoriteRepository",
    "NotificationRepository",
    "PetRepository",
    "ReservationRepository",
]

from petstore.services.like_toggle import LikeToggleSaga, ToggleState
from petstore.services.notifications import NotificationService
from petstore.services.pets import PetService

__all__ = ["LikeToggleSaga", "ToggleState", "NotificationService", "PetService"]

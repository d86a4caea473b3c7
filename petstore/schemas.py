import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


# Domain schemas
class PetFilter(BaseModel):
    """Sparse pet filter. Empty strings and a zero price mean "not set"."""

    id: str = Field(default="", description="Pet ID")
    name: str = Field(default="", description="Pet name")
    breed: str = Field(default="", description="Breed")
    gender: str = Field(default="", description="male / female, case-insensitive")
    price: float = Field(default=0, description="Exact price")
    reference_number: str = Field(default="", description="Shop reference number")


class Shop(BaseModel):
    name: str = ""
    location: str = ""


class Pet(BaseModel):
    id: str
    name: str
    breed: str = ""
    gender: str = ""
    price: float = 0
    image_url: Optional[str] = None
    likes: int = 0
    shop: Shop = Field(default_factory=Shop)
    birth_date: Optional[datetime] = None
    reference_number: str = ""
    tags: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    reservation_count: int = 0

    @field_validator("tags", mode="before")
    @classmethod
    def _decode_tags(cls, value: Any) -> Any:
        # Raw SQL reads return the JSON column undecoded
        if value is None:
            return []
        if isinstance(value, str):
            return json.loads(value) if value else []
        return value

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Pet":
        data = dict(row)
        data["shop"] = Shop(
            name=data.pop("shop_name", "") or "",
            location=data.pop("shop_location", "") or "",
        )
        return cls.model_validate(data)

    def to_row(self) -> dict[str, Any]:
        """Column map for writes (reservation_count is derived, not stored)."""
        return {
            "id": self.id,
            "name": self.name,
            "breed": self.breed,
            "gender": self.gender,
            "price": self.price,
            "image_url": self.image_url,
            "likes": self.likes,
            "shop_name": self.shop.name,
            "shop_location": self.shop.location,
            "birth_date": self.birth_date,
            "reference_number": self.reference_number,
            "tags": json.dumps(self.tags),
        }


class Favorite(BaseModel):
    id: Optional[int] = None
    pet_id: str
    user_id: str
    value: bool = True


class Reservation(BaseModel):
    pet_id: str
    user_id: str
    email: str = ""
    full_name: str = ""
    reservation_date: str = Field(..., description="YYYYMMDD")


class Notification(BaseModel):
    id: int
    title: str
    description: str = ""
    category: str = ""
    unread: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LikeToggleRequest(BaseModel):
    pet_id: str = Field(..., description="Pet ID")
    user_id: str = Field(..., description="User ID")
    value: bool = Field(..., description="True to like, False to unlike")


class LikeToggleResult(BaseModel):
    pet_id: str
    user_id: str
    liked: bool
    likes: int = Field(..., description="Like count written to the pet")


# Request schemas
class LikeRequest(BaseModel):
    user_id: str = Field(..., description="User ID")
    value: bool = Field(..., description="True to like, False to unlike")


class ReservationRequest(BaseModel):
    user_id: str = Field(..., description="User ID")
    email: str = Field(default="", description="Contact email")
    full_name: str = Field(default="", description="Full name")
    reservation_date: str = Field(..., description="Reservation date, YYYYMMDD")


class NotificationReadRequest(BaseModel):
    id: str = Field(default="", description="Notification ID")


# Response schemas
class PetListResponse(BaseModel):
    data: list[Pet]


class NotificationListResponse(BaseModel):
    data: list[Notification]


class NotificationCount(BaseModel):
    data: int = Field(..., description="Number of unread notifications")


class MessageResponse(BaseModel):
    code: int | str
    msg: str


class HealthResponse(BaseModel):
    status: str
    database: str

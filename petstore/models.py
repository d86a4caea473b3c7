from sqlalchemy import (
    Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, String, Text,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func, true

# Base class for models
Base = declarative_base()


class PetRow(Base):
    """Pet listing. `likes` mirrors the number of favorites rows for the pet."""

    __tablename__ = "pets"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    breed = Column(String(255), nullable=False, server_default="")
    gender = Column(String(16), nullable=False, server_default="")
    price = Column(Float, nullable=False, server_default="0")
    image_url = Column(Text, nullable=True)
    likes = Column(Integer, nullable=False, server_default="0")
    shop_name = Column(String(255), nullable=False, server_default="")
    shop_location = Column(String(255), nullable=False, server_default="")
    birth_date = Column(DateTime(timezone=True), nullable=True)
    reference_number = Column(String(64), nullable=False, server_default="")
    tags = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_pets_reference_number", "reference_number"),
    )


class FavoriteRow(Base):
    """User-pet like relationship. Existence of a row means "liked"."""

    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pet_id = Column(String(64), ForeignKey("pets.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(64), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("pet_id", "user_id", name="uq_favorites_pet_user"),
    )


class ReservationRow(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pet_id = Column(String(64), ForeignKey("pets.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)
    email = Column(String(255), nullable=False, server_default="")
    user_name = Column(String(255), nullable=False, server_default="")
    reservation_datetime = Column(DateTime(timezone=True), nullable=False)


class NotificationRow(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, server_default="")
    category = Column(String(64), nullable=False, server_default="")
    unread = Column(Boolean, nullable=False, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

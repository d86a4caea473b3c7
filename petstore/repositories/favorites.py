from petstore.schemas import Favorite
from petstore.sql.datastore import DataStore
from petstore.tracing import set_attribute, traced

FAVORITES_TABLE = "favorites"


class FavoriteRepository:
    """Favorites relation: one row per (pet, user) like."""

    def __init__(self, store: DataStore):
        self.store = store

    async def find_by_user_id(self, user_id: str) -> dict[str, Favorite]:
        """Map of pet_id -> Favorite for everything the user has liked."""
        with traced("FavoriteRepository.find_by_user_id", {"user_id": user_id}) as span:
            rows = await self.store.select_where(
                FAVORITES_TABLE, "user_id = :user_id", {"user_id": user_id}
            )
            set_attribute(span, "result_count", len(rows))

        return {
            row["pet_id"]: Favorite(id=row["id"], pet_id=row["pet_id"], user_id=row["user_id"], value=True)
            for row in rows
        }

    async def create(self, favorite: Favorite) -> None:
        with traced("FavoriteRepository.create", {"pet_id": favorite.pet_id, "user_id": favorite.user_id}):
            await self.store.insert(
                FAVORITES_TABLE, {"pet_id": favorite.pet_id, "user_id": favorite.user_id}
            )

    async def delete(self, favorite: Favorite) -> int:
        with traced("FavoriteRepository.delete", {"pet_id": favorite.pet_id, "user_id": favorite.user_id}):
            return await self.store.delete(
                FAVORITES_TABLE, {"pet_id": favorite.pet_id, "user_id": favorite.user_id}
            )
